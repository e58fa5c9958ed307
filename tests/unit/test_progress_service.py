"""Unit tests for ProgressService (bootcamp_tracker/services/progress_service.py)"""
import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, patch

from bootcamp_tracker.exceptions import (
    ConcurrentUpdateError,
    ConnectionError,
    QueryError,
    RecordNotFoundError,
    ValidationError,
)
from bootcamp_tracker.models.progress import ModuleStatus
from bootcamp_tracker.store.base import USERS_COLLECTION

from conftest import NOW, make_user


# ============================================================================
# update_module_status
# ============================================================================

@pytest.mark.asyncio
async def test_first_update_starts_streak(progress_service, registered_user):
    result = await progress_service.update_module_status(registered_user.uid, 1, "in-progress", now=NOW)

    assert result.streak == 1
    assert result.newly_unlocked == []
    assert result.record.status == ModuleStatus.IN_PROGRESS

    user = await progress_service.users.get_user(registered_user.uid)
    assert user.streak == 1
    assert user.last_updated == NOW
    assert len(user.progress) == 1


@pytest.mark.asyncio
async def test_completing_first_module_unlocks_achievement(progress_service, registered_user):
    result = await progress_service.update_module_status(registered_user.uid, 1, ModuleStatus.COMPLETED, now=NOW)

    assert result.newly_unlocked == ["first_module"]
    user = await progress_service.users.get_user(registered_user.uid)
    assert user.achievements == ["first_module"]


@pytest.mark.asyncio
async def test_repeat_update_keeps_single_record(progress_service, registered_user):
    """Two updates for one module: one record, startedAt kept, updatedAt from the second"""
    later = NOW + timedelta(hours=2)
    await progress_service.update_module_status(registered_user.uid, 4, "in-progress", now=NOW)
    await progress_service.update_module_status(registered_user.uid, 4, "completed", now=later)

    user = await progress_service.users.get_user(registered_user.uid)
    records = [r for r in user.progress if r.module_id == 4]
    assert len(records) == 1
    assert records[0].started_at == NOW
    assert records[0].updated_at == later
    assert records[0].status == ModuleStatus.COMPLETED


@pytest.mark.asyncio
async def test_achievements_are_not_duplicated(progress_service, registered_user):
    uid = registered_user.uid
    await progress_service.update_module_status(uid, 1, "completed", now=NOW)
    await progress_service.update_module_status(uid, 1, "in-progress", now=NOW)
    result = await progress_service.update_module_status(uid, 1, "completed", now=NOW)

    assert result.newly_unlocked == []
    assert result.achievements == ["first_module"]


@pytest.mark.asyncio
async def test_achievements_survive_regression(progress_service, registered_user):
    """Reverting a module never removes an unlocked achievement"""
    uid = registered_user.uid
    await progress_service.update_module_status(uid, 1, "completed", now=NOW)
    result = await progress_service.update_module_status(uid, 1, "not-started", now=NOW)

    assert "first_module" in result.achievements


@pytest.mark.asyncio
async def test_streak_across_days(progress_service, registered_user, days):
    uid = registered_user.uid
    streaks = []
    for offset, module_id in [(0, 1), (1, 2), (1, 3), (2, 4), (4, 5)]:
        result = await progress_service.update_module_status(uid, module_id, "in-progress", now=days(offset))
        streaks.append(result.streak)

    assert streaks == [1, 2, 2, 3, 1]


@pytest.mark.asyncio
async def test_three_day_streak_unlocks(progress_service, registered_user, days):
    uid = registered_user.uid
    unlocked = []
    for offset in range(3):
        result = await progress_service.update_module_status(uid, offset + 1, "in-progress", now=days(offset))
        unlocked += result.newly_unlocked

    assert unlocked == ["three_day_streak"]


@pytest.mark.asyncio
async def test_unknown_module_id_is_accepted(progress_service, registered_user):
    result = await progress_service.update_module_status(registered_user.uid, 404, "completed", now=NOW)
    assert [r.module_id for r in result.ledger] == [404]


@pytest.mark.asyncio
async def test_invalid_status(progress_service, registered_user):
    with pytest.raises(ValidationError):
        await progress_service.update_module_status(registered_user.uid, 1, "done", now=NOW)


@pytest.mark.asyncio
async def test_unknown_user(progress_service):
    with pytest.raises(RecordNotFoundError):
        await progress_service.update_module_status("ghost", 1, "completed", now=NOW)


# ============================================================================
# Concurrency & failures
# ============================================================================

@pytest.mark.asyncio
async def test_concurrent_write_is_merged_not_lost(progress_service, registered_user, monkeypatch):
    """Another session writes between our read and write: we recompute instead of overwriting"""
    uid = registered_user.uid
    real_load = progress_service.users.load_user
    calls = {"n": 0}

    async def racing_load(user_id):
        calls["n"] += 1
        loaded = await real_load(user_id)
        if calls["n"] == 1:
            await progress_service.update_module_status(user_id, 2, "completed", now=NOW)
        return loaded

    monkeypatch.setattr(progress_service.users, "load_user", racing_load)
    result = await progress_service.update_module_status(uid, 1, "completed", now=NOW)

    assert sorted(r.module_id for r in result.ledger) == [1, 2]
    assert result.newly_unlocked == []
    assert result.achievements == ["first_module"]
    assert calls["n"] == 3


@pytest.mark.asyncio
async def test_conflict_gives_up_after_max_attempts(progress_service, registered_user, store, monkeypatch):
    update = AsyncMock(side_effect=ConcurrentUpdateError("conflict", record_id=registered_user.uid))
    monkeypatch.setattr(store, "update_fields", update)

    with pytest.raises(ConcurrentUpdateError):
        await progress_service.update_module_status(registered_user.uid, 1, "completed", now=NOW)

    assert update.await_count == 3


@pytest.mark.asyncio
async def test_store_failure_leaves_document_unchanged(progress_service, registered_user, store, monkeypatch):
    monkeypatch.setattr(store, "update_fields", AsyncMock(side_effect=QueryError("disk full")))

    with pytest.raises(QueryError):
        await progress_service.update_module_status(registered_user.uid, 1, "completed", now=NOW)

    snapshot = await store.get_document(USERS_COLLECTION, registered_user.uid)
    assert snapshot.data["progress"] == []
    assert snapshot.data["streak"] == 0


@pytest.mark.asyncio
async def test_transient_read_failure_is_retried(progress_service, registered_user, store, monkeypatch):
    real_get = store.get_document
    failures = {"left": 1}

    async def flaky_get(collection, doc_id):
        if failures["left"]:
            failures["left"] -= 1
            raise ConnectionError("connection reset")
        return await real_get(collection, doc_id)

    monkeypatch.setattr(store, "get_document", flaky_get)
    with patch("bootcamp_tracker.resilience.retry.asyncio.sleep", AsyncMock()):
        result = await progress_service.update_module_status(registered_user.uid, 1, "completed", now=NOW)

    assert result.newly_unlocked == ["first_module"]


# ============================================================================
# Study sessions
# ============================================================================

@pytest.mark.asyncio
async def test_log_study_session_defaults(progress_service, registered_user):
    summary = await progress_service.log_study_session(registered_user.uid, now=NOW)

    assert summary["total_minutes"] == 25
    assert summary["session_count"] == 1

    user = await progress_service.users.get_user(registered_user.uid)
    assert user.total_study_time == 25
    assert user.study_sessions[0].mode == "focus"


@pytest.mark.asyncio
async def test_log_study_session_accumulates(progress_service, registered_user):
    await progress_service.log_study_session(registered_user.uid, 50, now=NOW)
    summary = await progress_service.log_study_session(registered_user.uid, 30, now=NOW)
    assert summary["display"] == "1 hr 20 min"


@pytest.mark.asyncio
async def test_log_study_session_does_not_touch_streak(progress_service, registered_user):
    await progress_service.log_study_session(registered_user.uid, 25, now=NOW)
    user = await progress_service.users.get_user(registered_user.uid)
    assert user.streak == 0
    assert user.last_updated is None


@pytest.mark.asyncio
@pytest.mark.parametrize("duration,mode", [(0, "focus"), (-10, "focus"), (25, "nap")])
async def test_log_study_session_invalid(progress_service, registered_user, duration, mode):
    with pytest.raises(ValidationError):
        await progress_service.log_study_session(registered_user.uid, duration, mode, now=NOW)


# ============================================================================
# Views
# ============================================================================

@pytest.mark.asyncio
async def test_overview(progress_service, registered_user):
    await progress_service.update_module_status(registered_user.uid, 1, "completed", now=NOW)
    overview = await progress_service.get_overview(registered_user.uid)

    assert overview["completion"] == 2
    assert overview["completed_modules"] == 1
    assert overview["total_modules"] == 46
    assert overview["next_module"]["id"] == 2
    assert overview["user"]["achievements"] == ["first_module"]
    assert overview["milestone"]["title"] == "Just Getting Started! 🌱"


@pytest.mark.asyncio
async def test_categories_include_milestones(progress_service, registered_user):
    categories = await progress_service.get_categories(registered_user.uid)
    assert len(categories) == 5
    assert categories[0]["milestone"] == "Web Beginner 🌐"


@pytest.mark.asyncio
async def test_leaderboard_and_weekly_activity(progress_service, seed_user):
    await seed_user(make_user("a", "Ann", completed=range(1, 5)))
    await seed_user(make_user("b", "Bo", completed=range(1, 20)))

    leaderboard = await progress_service.get_leaderboard(current_user_id="a")
    assert [row["id"] for row in leaderboard] == ["b", "a"]
    assert leaderboard[1]["is_current_user"] is True

    weekly = await progress_service.get_weekly_activity(now=NOW + timedelta(days=1))
    assert [(row["id"], row["this_week"]) for row in weekly] == [("b", 19), ("a", 4)]


@pytest.mark.asyncio
async def test_achievements_view(progress_service, registered_user):
    await progress_service.update_module_status(registered_user.uid, 1, "completed", now=NOW)
    summary = await progress_service.get_achievements(registered_user.uid)

    assert summary["total_unlocked"] == 1
    assert len(summary["locked"]) == 17


# ============================================================================
# Live updates
# ============================================================================

@pytest.mark.asyncio
async def test_subscribe_user_receives_accounts(progress_service, registered_user):
    streaks = []
    subscription = await progress_service.subscribe_user(registered_user.uid, lambda user: streaks.append(user.streak))

    await progress_service.update_module_status(registered_user.uid, 1, "completed", now=NOW)
    subscription.unsubscribe()
    await progress_service.update_module_status(registered_user.uid, 2, "completed", now=NOW)

    assert streaks == [0, 1]


@pytest.mark.asyncio
async def test_subscribe_roster(progress_service, seed_user):
    sizes = []

    async def on_roster(roster):
        sizes.append(len(roster))

    await seed_user(make_user("a"))
    async with await progress_service.subscribe_roster(on_roster):
        await seed_user(make_user("b"))

    assert sizes == [1, 2]
