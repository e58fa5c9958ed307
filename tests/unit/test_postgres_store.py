"""Unit tests for the PostgreSQL document store (database mocked)"""
import pytest
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import psycopg

from bootcamp_tracker.exceptions import (
    ConcurrentUpdateError,
    ConnectionError,
    QueryError,
    RecordExistsError,
    RecordNotFoundError,
)
from bootcamp_tracker.store.postgres import PostgresDocumentStore


class FakeDatabase:
    """Database stand-in whose connection yields one mocked cursor"""

    def __init__(self, cursor):
        self.cursor = cursor
        self.conn = MagicMock()
        self.conn.commit = AsyncMock()
        cursor_cm = MagicMock()
        cursor_cm.__aenter__ = AsyncMock(return_value=cursor)
        cursor_cm.__aexit__ = AsyncMock(return_value=False)
        self.conn.cursor = MagicMock(return_value=cursor_cm)
        self.close_pool = AsyncMock()

    @asynccontextmanager
    async def connection(self):
        yield self.conn


def make_store(fetchone=None, fetchall=None, execute_error=None):
    cursor = AsyncMock()
    cursor.execute = AsyncMock(side_effect=execute_error)
    cursor.fetchone = AsyncMock(side_effect=fetchone or [None])
    cursor.fetchall = AsyncMock(return_value=fetchall or [])
    database = FakeDatabase(cursor)
    return PostgresDocumentStore(database), database


# ============================================================================
# Reads
# ============================================================================

@pytest.mark.asyncio
async def test_get_document_found():
    store, database = make_store(fetchone=[{"data": {"name": "Ada"}, "version": 4}])
    snapshot = await store.get_document("users", "u1")

    assert snapshot.exists
    assert snapshot.data == {"name": "Ada"}
    assert snapshot.version == 4
    assert database.cursor.execute.call_args[0][1] == ("users", "u1")


@pytest.mark.asyncio
async def test_get_document_missing():
    store, _ = make_store(fetchone=[None])
    snapshot = await store.get_document("users", "u1")
    assert snapshot.exists is False


@pytest.mark.asyncio
async def test_list_documents():
    store, _ = make_store(fetchall=[
        {"id": "a", "data": {"name": "A"}, "version": 1},
        {"id": "b", "data": {"name": "B"}, "version": 2},
    ])
    snapshots = await store.list_documents("users")
    assert [(s.id, s.version) for s in snapshots] == [("a", 1), ("b", 2)]


# ============================================================================
# Writes
# ============================================================================

@pytest.mark.asyncio
async def test_set_document_commits_and_notifies():
    store, database = make_store(fetchone=[{"data": {"name": "Ada"}, "version": 1}])
    received = []
    store._hub.add(("document", "users", "u1"), received.append)

    snapshot = await store.set_document("users", "u1", {"name": "Ada"})

    assert snapshot.version == 1
    database.conn.commit.assert_awaited_once()
    assert received == [snapshot]


@pytest.mark.asyncio
async def test_create_document_inserts_without_overwrite():
    store, database = make_store(fetchone=[{"data": {"uid": "u1"}, "version": 1}])
    snapshot = await store.create_document("account_emails", "ada@example.com", {"uid": "u1"})

    query = database.cursor.execute.call_args[0][0]
    assert "ON CONFLICT (collection, id) DO NOTHING" in query
    assert snapshot.data == {"uid": "u1"}


@pytest.mark.asyncio
async def test_create_document_taken():
    store, _ = make_store(fetchone=[None])
    with pytest.raises(RecordExistsError):
        await store.create_document("account_emails", "ada@example.com", {"uid": "u2"})


@pytest.mark.asyncio
async def test_delete_document():
    store, database = make_store()
    database.cursor.rowcount = 1
    received = []
    store._hub.add(("document", "account_emails", "ada@example.com"), received.append)

    await store.delete_document("account_emails", "ada@example.com")

    assert "DELETE FROM documents" in database.cursor.execute.call_args[0][0]
    database.conn.commit.assert_awaited_once()
    assert received[0].exists is False


@pytest.mark.asyncio
async def test_update_fields_with_version_guard():
    store, database = make_store(fetchone=[{"data": {"streak": 2}, "version": 6}])
    snapshot = await store.update_fields("users", "u1", {"streak": 2}, expected_version=5)

    query, params = database.cursor.execute.call_args[0]
    assert "AND version = %s" in query
    assert params[-1] == 5
    assert snapshot.version == 6


@pytest.mark.asyncio
async def test_update_fields_version_conflict():
    store, _ = make_store(fetchone=[None, {"version": 7}])
    with pytest.raises(ConcurrentUpdateError) as exc_info:
        await store.update_fields("users", "u1", {"streak": 2}, expected_version=5)
    assert exc_info.value.actual_version == 7


@pytest.mark.asyncio
async def test_update_fields_missing_document():
    store, _ = make_store(fetchone=[None, None])
    with pytest.raises(RecordNotFoundError):
        await store.update_fields("users", "ghost", {"streak": 2})


# ============================================================================
# Error mapping
# ============================================================================

@pytest.mark.asyncio
async def test_operational_error_becomes_connection_error():
    store, _ = make_store(execute_error=psycopg.OperationalError("server closed the connection"))
    with pytest.raises(ConnectionError):
        await store.get_document("users", "u1")


@pytest.mark.asyncio
async def test_other_psycopg_error_becomes_query_error():
    store, _ = make_store(execute_error=psycopg.ProgrammingError("syntax error"))
    with pytest.raises(QueryError):
        await store.set_document("users", "u1", {})


@pytest.mark.asyncio
async def test_close_releases_pool():
    store, database = make_store()
    await store.close()
    database.close_pool.assert_awaited_once()
