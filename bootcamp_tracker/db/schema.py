"""Document table for the postgres store"""
import logging

from bootcamp_tracker.db.connection import Database

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    data JSONB NOT NULL,
    version INTEGER NOT NULL DEFAULT 1,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    PRIMARY KEY (collection, id)
);

CREATE INDEX IF NOT EXISTS idx_documents_collection_created
    ON documents (collection, created_at);
"""


async def init_schema(database: Database) -> None:
    """Create the documents table if it does not exist"""
    async with database.connection() as conn:
        await conn.execute(SCHEMA_SQL)
        await conn.commit()
    logger.info("Document schema ready")
