"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bootcamp_tracker.api.routes import router
from bootcamp_tracker.api.websockets import router as websocket_router
from bootcamp_tracker.api.middleware import setup_cors, setup_rate_limiting, setup_request_metrics
from bootcamp_tracker.config import DATABASE_URL, LOG_LEVEL, STORE_BACKEND
from bootcamp_tracker.exceptions import (
    ConcurrentUpdateError,
    DatabaseError,
    EmailAlreadyInUseError,
    IdentityError,
    IdentityNetworkError,
    InvalidCredentialsError,
    RecordNotFoundError,
    SessionNotFoundError,
    TrackerError,
    ValidationError,
)
from bootcamp_tracker.monitoring.sentry_config import capture_exception, init_sentry
from bootcamp_tracker.services.container import init_container, reset_container
from bootcamp_tracker.store.base import DocumentStore

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


async def create_store(backend: str = STORE_BACKEND) -> DocumentStore:
    """Build the configured document store (pool opened, schema ready)"""
    if backend == "postgres":
        from bootcamp_tracker.db.connection import Database
        from bootcamp_tracker.db.schema import init_schema
        from bootcamp_tracker.store.postgres import PostgresDocumentStore

        database = Database(DATABASE_URL)
        await database.init_pool()
        await init_schema(database)
        logger.info("Database pool initialized")
        return PostgresDocumentStore(database)

    from bootcamp_tracker.store.memory import InMemoryDocumentStore
    return InMemoryDocumentStore()


def status_for_error(exc: TrackerError) -> int:
    """HTTP status code for a tracker error"""
    if isinstance(exc, EmailAlreadyInUseError):
        return 409
    if isinstance(exc, (InvalidCredentialsError, SessionNotFoundError)):
        return 401
    if isinstance(exc, IdentityNetworkError):
        return 503
    if isinstance(exc, IdentityError):
        return 400
    if isinstance(exc, RecordNotFoundError):
        return 404
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, ConcurrentUpdateError):
        return 409
    if isinstance(exc, DatabaseError):
        return 503
    return 500


def create_api_application(store: Optional[DocumentStore] = None) -> FastAPI:
    """
    Create and configure FastAPI application

    Args:
        store: Document store to use; built from STORE_BACKEND at startup when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifecycle manager for FastAPI application"""
        # Startup
        logger.info("Starting API server...")
        init_sentry()
        active_store = store or await create_store()
        init_container(active_store)
        logger.info(f"Using {active_store.backend_name} document store")

        yield

        # Shutdown
        logger.info("Shutting down API server...")
        await active_store.close()
        reset_container()
        logger.info("Document store closed")

    app = FastAPI(
        title="Bootcamp Tracker API",
        description="Course progress, streaks, achievements and leaderboards",
        version="1.0.0",
        lifespan=lifespan
    )

    # Setup middleware
    setup_cors(app)
    setup_rate_limiting(app)
    setup_request_metrics(app)

    # Include routes
    app.include_router(router)
    app.include_router(websocket_router)

    @app.exception_handler(TrackerError)
    async def tracker_exception_handler(request: Request, exc: TrackerError):
        status_code = status_for_error(exc)
        if status_code >= 500:
            capture_exception(exc, request_id=exc.request_id, operation=exc.operation)
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        capture_exception(exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)}
        )

    logger.info("FastAPI application created")

    return app
