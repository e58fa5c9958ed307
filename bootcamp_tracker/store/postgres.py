"""
PostgreSQL document store

Each document is one row of the `documents` table: JSONB body plus an
integer version that every write increments. Field updates use the JSONB
`||` operator, so they merge top-level keys in a single statement.
"""

import logging
from typing import Any, Dict, List, Optional

import psycopg
from psycopg.types.json import Jsonb

from bootcamp_tracker.db.connection import Database
from bootcamp_tracker.exceptions import (
    ConcurrentUpdateError,
    RecordExistsError,
    RecordNotFoundError,
    wrap_external_exception,
)
from bootcamp_tracker.store.base import DocumentSnapshot, DocumentStore

logger = logging.getLogger(__name__)


class PostgresDocumentStore(DocumentStore):
    """
    Durable store backed by a psycopg connection pool.

    Change notifications are fanned out in-process: listeners see writes
    made through this instance only.
    """

    backend_name = "postgres"

    def __init__(self, database: Database):
        super().__init__()
        self.database = database

    async def close(self) -> None:
        await self.database.close_pool()

    async def get_document(self, collection: str, doc_id: str) -> DocumentSnapshot:
        try:
            async with self.database.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        "SELECT data, version FROM documents WHERE collection = %s AND id = %s",
                        (collection, doc_id)
                    )
                    row = await cur.fetchone()
        except psycopg.Error as e:
            raise wrap_external_exception(
                e, operation="get_document", context={"collection": collection, "id": doc_id}
            )

        if row is None:
            return DocumentSnapshot(id=doc_id, data=None, version=0)
        return DocumentSnapshot(id=doc_id, data=row["data"], version=row["version"])

    async def list_documents(self, collection: str) -> List[DocumentSnapshot]:
        try:
            async with self.database.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        """
                        SELECT id, data, version FROM documents
                        WHERE collection = %s
                        ORDER BY created_at, id
                        """,
                        (collection,)
                    )
                    rows = await cur.fetchall()
        except psycopg.Error as e:
            raise wrap_external_exception(
                e, operation="list_documents", context={"collection": collection}
            )

        return [DocumentSnapshot(id=row["id"], data=row["data"], version=row["version"]) for row in rows]

    async def _write_document(
        self, collection: str, doc_id: str, data: Dict[str, Any]
    ) -> DocumentSnapshot:
        try:
            async with self.database.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        """
                        INSERT INTO documents (collection, id, data, version)
                        VALUES (%s, %s, %s, 1)
                        ON CONFLICT (collection, id) DO UPDATE
                        SET data = EXCLUDED.data,
                            version = documents.version + 1,
                            updated_at = now()
                        RETURNING data, version
                        """,
                        (collection, doc_id, Jsonb(data))
                    )
                    row = await cur.fetchone()
                await conn.commit()
        except psycopg.Error as e:
            raise wrap_external_exception(
                e, operation="set_document", context={"collection": collection, "id": doc_id}
            )

        logger.debug(f"Wrote {collection}/{doc_id} (version {row['version']})")
        return DocumentSnapshot(id=doc_id, data=row["data"], version=row["version"])

    async def _insert_document(
        self, collection: str, doc_id: str, data: Dict[str, Any]
    ) -> DocumentSnapshot:
        try:
            async with self.database.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        """
                        INSERT INTO documents (collection, id, data, version)
                        VALUES (%s, %s, %s, 1)
                        ON CONFLICT (collection, id) DO NOTHING
                        RETURNING data, version
                        """,
                        (collection, doc_id, Jsonb(data))
                    )
                    row = await cur.fetchone()
                await conn.commit()
        except psycopg.Error as e:
            raise wrap_external_exception(
                e, operation="create_document", context={"collection": collection, "id": doc_id}
            )

        if row is None:
            raise RecordExistsError(
                f"Document {collection}/{doc_id} already exists",
                record_type=collection,
                record_id=doc_id,
                operation="create_document",
            )
        logger.debug(f"Created {collection}/{doc_id}")
        return DocumentSnapshot(id=doc_id, data=row["data"], version=row["version"])

    async def _remove_document(self, collection: str, doc_id: str) -> bool:
        try:
            async with self.database.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        "DELETE FROM documents WHERE collection = %s AND id = %s",
                        (collection, doc_id)
                    )
                    removed = cur.rowcount > 0
                await conn.commit()
        except psycopg.Error as e:
            raise wrap_external_exception(
                e, operation="delete_document", context={"collection": collection, "id": doc_id}
            )
        return removed

    async def _merge_fields(
        self,
        collection: str,
        doc_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int]
    ) -> DocumentSnapshot:
        query = """
            UPDATE documents
            SET data = data || %s,
                version = version + 1,
                updated_at = now()
            WHERE collection = %s AND id = %s
        """
        params: list = [Jsonb(fields), collection, doc_id]
        if expected_version is not None:
            query += " AND version = %s"
            params.append(expected_version)
        query += " RETURNING data, version"

        try:
            async with self.database.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    row = await cur.fetchone()
                    current = None
                    if row is None:
                        await cur.execute(
                            "SELECT version FROM documents WHERE collection = %s AND id = %s",
                            (collection, doc_id)
                        )
                        current = await cur.fetchone()
                await conn.commit()
        except psycopg.Error as e:
            raise wrap_external_exception(
                e, operation="update_fields", context={"collection": collection, "id": doc_id}
            )

        if row is None:
            if current is None:
                raise RecordNotFoundError(
                    f"Document {collection}/{doc_id} does not exist",
                    record_type=collection,
                    record_id=doc_id,
                    operation="update_fields",
                )
            raise ConcurrentUpdateError(
                f"Document {collection}/{doc_id} is at version {current['version']}, expected {expected_version}",
                record_id=doc_id,
                expected_version=expected_version,
                actual_version=current["version"],
                operation="update_fields",
            )

        logger.debug(f"Updated {collection}/{doc_id} fields {sorted(fields)} (version {row['version']})")
        return DocumentSnapshot(id=doc_id, data=row["data"], version=row["version"])
