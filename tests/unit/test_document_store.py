"""Unit tests for the in-memory document store and subscriptions"""
import pytest

from bootcamp_tracker.exceptions import ConcurrentUpdateError, RecordExistsError, RecordNotFoundError
from bootcamp_tracker.store.memory import InMemoryDocumentStore
from bootcamp_tracker.store.subscriptions import SubscriptionHub


# ============================================================================
# Reads & writes
# ============================================================================

@pytest.mark.asyncio
async def test_missing_document(store):
    snapshot = await store.get_document("users", "nobody")
    assert snapshot.exists is False
    assert snapshot.version == 0


@pytest.mark.asyncio
async def test_set_document_bumps_version(store):
    first = await store.set_document("users", "u1", {"name": "Ada"})
    second = await store.set_document("users", "u1", {"name": "Grace"})

    assert first.version == 1
    assert second.version == 2
    assert (await store.get_document("users", "u1")).data == {"name": "Grace"}


@pytest.mark.asyncio
async def test_update_fields_merges_top_level(store):
    await store.set_document("users", "u1", {"name": "Ada", "streak": 0})
    snapshot = await store.update_fields("users", "u1", {"streak": 2})

    assert snapshot.data == {"name": "Ada", "streak": 2}
    assert snapshot.version == 2


@pytest.mark.asyncio
async def test_update_fields_missing_document(store):
    with pytest.raises(RecordNotFoundError):
        await store.update_fields("users", "ghost", {"streak": 1})


@pytest.mark.asyncio
async def test_update_fields_version_check(store):
    await store.set_document("users", "u1", {"streak": 0})
    await store.update_fields("users", "u1", {"streak": 1}, expected_version=1)

    with pytest.raises(ConcurrentUpdateError) as exc_info:
        await store.update_fields("users", "u1", {"streak": 5}, expected_version=1)

    assert exc_info.value.expected_version == 1
    assert exc_info.value.actual_version == 2
    assert (await store.get_document("users", "u1")).data == {"streak": 1}


@pytest.mark.asyncio
async def test_create_document_only_once(store):
    created = await store.create_document("account_emails", "ada@example.com", {"uid": "u1"})
    assert created.version == 1

    with pytest.raises(RecordExistsError):
        await store.create_document("account_emails", "ada@example.com", {"uid": "u2"})

    assert (await store.get_document("account_emails", "ada@example.com")).data == {"uid": "u1"}


@pytest.mark.asyncio
async def test_delete_document_notifies(store):
    await store.create_document("account_emails", "ada@example.com", {"uid": "u1"})
    received = []
    await store.subscribe("account_emails", "ada@example.com", received.append)

    await store.delete_document("account_emails", "ada@example.com")
    await store.delete_document("account_emails", "ada@example.com")

    assert [snapshot.exists for snapshot in received] == [True, False]
    assert (await store.get_document("account_emails", "ada@example.com")).exists is False


@pytest.mark.asyncio
async def test_snapshots_are_copies(store):
    await store.set_document("users", "u1", {"progress": []})
    snapshot = await store.get_document("users", "u1")
    snapshot.data["progress"].append("tampered")

    assert (await store.get_document("users", "u1")).data == {"progress": []}


@pytest.mark.asyncio
async def test_list_documents_in_creation_order(store):
    for user_id in ["c", "a", "b"]:
        await store.set_document("users", user_id, {"name": user_id})
    await store.set_document("accounts", "x", {})

    assert [s.id for s in await store.list_documents("users")] == ["c", "a", "b"]
    assert await store.list_documents("empty") == []


# ============================================================================
# Subscriptions
# ============================================================================

@pytest.mark.asyncio
async def test_subscribe_delivers_current_then_each_write(store):
    received = []
    await store.set_document("users", "u1", {"streak": 0})

    subscription = await store.subscribe("users", "u1", received.append)
    await store.update_fields("users", "u1", {"streak": 1})
    await store.set_document("users", "other", {"streak": 9})

    assert [s.data["streak"] for s in received] == [0, 1]
    assert subscription.active


@pytest.mark.asyncio
async def test_subscribe_to_missing_document(store):
    received = []
    await store.subscribe("users", "later", received.append)
    await store.set_document("users", "later", {"name": "New"})

    assert [s.exists for s in received] == [False, True]


@pytest.mark.asyncio
async def test_unsubscribe_stops_delivery(store):
    received = []
    subscription = await store.subscribe("users", "u1", received.append)
    subscription.unsubscribe()
    subscription.unsubscribe()

    await store.set_document("users", "u1", {"name": "Ada"})

    assert len(received) == 1
    assert store.listener_count == 0


@pytest.mark.asyncio
async def test_async_callbacks_are_awaited(store):
    received = []

    async def on_change(snapshot):
        received.append(snapshot.version)

    await store.subscribe("users", "u1", on_change)
    await store.set_document("users", "u1", {})

    assert received == [0, 1]


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_writer(store):
    received = []

    def broken(snapshot):
        raise RuntimeError("listener bug")

    await store.set_document("users", "u1", {"streak": 0})
    await store.subscribe("users", "u1", broken)
    await store.subscribe("users", "u1", received.append)

    snapshot = await store.update_fields("users", "u1", {"streak": 3})

    assert snapshot.data["streak"] == 3
    assert [s.data["streak"] for s in received] == [0, 3]


@pytest.mark.asyncio
async def test_collection_subscription_gets_full_roster(store):
    rosters = []
    await store.set_document("users", "a", {"name": "A"})

    await store.subscribe_collection("users", rosters.append)
    await store.set_document("users", "b", {"name": "B"})
    await store.set_document("accounts", "x", {})

    assert [[s.id for s in roster] for roster in rosters] == [["a"], ["a", "b"]]


@pytest.mark.asyncio
async def test_subscription_as_async_context_manager(store):
    received = []
    async with await store.subscribe("users", "u1", received.append):
        await store.set_document("users", "u1", {})

    await store.set_document("users", "u1", {})
    assert len(received) == 2


@pytest.mark.asyncio
async def test_hub_listener_counts():
    hub = SubscriptionHub()
    first = hub.add("k", lambda payload: None)
    hub.add("k", lambda payload: None)
    hub.add("other", lambda payload: None)

    assert hub.listener_count("k") == 2
    assert hub.listener_count() == 3

    first.unsubscribe()
    assert hub.listener_count("k") == 1
    assert hub.has_listeners("k")


@pytest.mark.asyncio
async def test_listener_may_unsubscribe_while_notified():
    store = InMemoryDocumentStore()
    received = []
    holder = {}

    def once(snapshot):
        received.append(snapshot)
        if snapshot.exists:
            holder["sub"].unsubscribe()

    holder["sub"] = await store.subscribe("users", "u1", once)
    await store.set_document("users", "u1", {})
    await store.set_document("users", "u1", {})

    assert len(received) == 2
