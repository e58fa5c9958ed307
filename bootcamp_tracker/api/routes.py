"""API routes for bootcamp tracker"""
import logging
from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from bootcamp_tracker.api.auth import get_services, require_learner, verify_api_key
from bootcamp_tracker.api.middleware import limiter
from bootcamp_tracker.api.models import (
    AuthResponse,
    HealthCheckResponse,
    LeaderboardEntry,
    LoginRequest,
    LogoutRequest,
    RegisterRequest,
    StatusUpdateRequest,
    StatusUpdateResponse,
    StudySessionRequest,
    StudySummaryResponse,
    WeeklyActivityEntry,
)
from bootcamp_tracker.auth.identity import AccountHandle
from bootcamp_tracker.curriculum.catalog import CATEGORIES, COURSE_MODULES
from bootcamp_tracker.exceptions import DatabaseError
from bootcamp_tracker.gamification.progress_ledger import completion_percentage
from bootcamp_tracker.monitoring.sentry_config import set_user_context
from bootcamp_tracker.services.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter()


def _auth_response(account: AccountHandle) -> AuthResponse:
    return AuthResponse(
        uid=account.uid,
        email=account.email,
        display_name=account.display_name,
        token=account.token,
    )


# ============================================
# Accounts
# ============================================

@router.post("/api/v1/auth/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def register(
    request: Request,
    payload: RegisterRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Create an account and its default progress document (Rate limit: 10/minute)"""
    account = await services.user_service.register(payload.email, payload.password, payload.display_name)
    return _auth_response(account)


@router.post("/api/v1/auth/login", response_model=AuthResponse)
@limiter.limit("20/minute")
async def login(
    request: Request,
    payload: LoginRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Sign in (Rate limit: 20/minute)"""
    account = await services.user_service.login(payload.email, payload.password)
    return _auth_response(account)


@router.post("/api/v1/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("20/minute")
async def logout(
    request: Request,
    payload: LogoutRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """End a session (Rate limit: 20/minute)"""
    await services.user_service.logout(payload.token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================
# Curriculum
# ============================================

@router.get("/api/v1/curriculum")
@limiter.limit("60/minute")
async def get_curriculum(
    request: Request,
    api_key: str = Depends(verify_api_key)
):
    """Static module and category catalog (Rate limit: 60/minute)"""
    return {
        "modules": [module.model_dump() for module in COURSE_MODULES],
        "categories": [category.model_dump() for category in CATEGORIES],
    }


# ============================================
# Learner progress
# ============================================

@router.get("/api/v1/users/{user_id}")
@limiter.limit("60/minute")
async def get_user(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """User document with completion, milestone and next module (Rate limit: 60/minute)"""
    return await services.progress_service.get_overview(user_id)


@router.put("/api/v1/users/{user_id}/modules/{module_id}", response_model=StatusUpdateResponse)
@limiter.limit("30/minute")
async def update_module_status(
    request: Request,
    user_id: str,
    module_id: int,
    payload: StatusUpdateRequest,
    api_key: str = Depends(verify_api_key),
    account: AccountHandle = Depends(require_learner),
    services: ServiceContainer = Depends(get_services)
):
    """Set a module's status; returns the new streak and newly unlocked achievements (Rate limit: 30/minute)"""
    set_user_context(user_id)
    result = await services.progress_service.update_module_status(user_id, module_id, payload.status)
    return StatusUpdateResponse(
        user_id=user_id,
        module_id=module_id,
        status=result.record.status,
        streak=result.streak,
        completion=completion_percentage(result.ledger),
        newly_unlocked=result.newly_unlocked,
        achievements=result.achievements,
        progress=[record.to_document() for record in result.ledger],
    )


@router.get("/api/v1/users/{user_id}/achievements")
@limiter.limit("60/minute")
async def get_achievements(
    request: Request,
    user_id: str,
    include_locked: bool = True,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Unlocked achievements and locked ones with progress (Rate limit: 60/minute)"""
    return await services.progress_service.get_achievements(user_id, include_locked)


@router.get("/api/v1/users/{user_id}/categories")
@limiter.limit("60/minute")
async def get_categories(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Per-category completion (Rate limit: 60/minute)"""
    return {"categories": await services.progress_service.get_categories(user_id)}


@router.get("/api/v1/users/{user_id}/recommendations")
@limiter.limit("60/minute")
async def get_recommendations(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Modules to study next and a learning tip (Rate limit: 60/minute)"""
    return await services.progress_service.get_recommendations(user_id)


@router.post(
    "/api/v1/users/{user_id}/study-sessions",
    response_model=StudySummaryResponse,
    status_code=status.HTTP_201_CREATED
)
@limiter.limit("30/minute")
async def log_study_session(
    request: Request,
    user_id: str,
    payload: StudySessionRequest,
    api_key: str = Depends(verify_api_key),
    account: AccountHandle = Depends(require_learner),
    services: ServiceContainer = Depends(get_services)
):
    """Record a finished study timer session (Rate limit: 30/minute)"""
    set_user_context(user_id)
    return await services.progress_service.log_study_session(user_id, payload.duration, payload.mode)


@router.get("/api/v1/users/{user_id}/study-sessions", response_model=StudySummaryResponse)
@limiter.limit("60/minute")
async def get_study_sessions(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Study time totals and recent sessions (Rate limit: 60/minute)"""
    return await services.progress_service.get_study_summary(user_id)


# ============================================
# Roster
# ============================================

@router.get("/api/v1/leaderboard", response_model=List[LeaderboardEntry])
@limiter.limit("60/minute")
async def get_leaderboard(
    request: Request,
    viewer_id: Optional[str] = None,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """All learners by overall completion (Rate limit: 60/minute)"""
    return await services.progress_service.get_leaderboard(viewer_id)


@router.get("/api/v1/weekly-activity", response_model=List[WeeklyActivityEntry])
@limiter.limit("60/minute")
async def get_weekly_activity(
    request: Request,
    viewer_id: Optional[str] = None,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """All learners by modules completed this week (Rate limit: 60/minute)"""
    return await services.progress_service.get_weekly_activity(viewer_id)


# ============================================
# Operations
# ============================================

@router.get("/api/health", response_model=HealthCheckResponse)
@limiter.limit("60/minute")
async def health_check(
    request: Request,
    services: ServiceContainer = Depends(get_services)
):
    """Health check endpoint (Rate limit: 60/minute for monitoring systems)"""
    try:
        await services.store.get_document("health", "ping")
        store_status = "connected"
    except DatabaseError as e:
        logger.error(f"Store health check failed: {e}")
        store_status = "disconnected"

    return HealthCheckResponse(
        status="healthy" if store_status == "connected" else "degraded",
        store=store_status,
        backend=services.store.backend_name,
        timestamp=datetime.now(timezone.utc)
    )


@router.get("/metrics")
async def metrics_endpoint():
    """Expose Prometheus metrics"""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
