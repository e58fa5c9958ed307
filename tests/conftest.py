"""Global test fixtures and utilities for bootcamp-tracker tests"""
import pytest
from datetime import datetime, timedelta, timezone
from typing import Iterable

from bootcamp_tracker.auth.identity import PasswordIdentityProvider
from bootcamp_tracker.models.progress import ModuleStatus, ProgressRecord
from bootcamp_tracker.models.user import UserAccount
from bootcamp_tracker.services.progress_service import ProgressService
from bootcamp_tracker.services.user_service import UserService
from bootcamp_tracker.store.base import USERS_COLLECTION
from bootcamp_tracker.store.memory import InMemoryDocumentStore


# Wednesday, so the current week started on Sunday 2024-03-10
NOW = datetime(2024, 3, 13, 15, 30, tzinfo=timezone.utc)


def make_ledger(
    completed: Iterable[int] = (),
    in_progress: Iterable[int] = (),
    at: datetime = NOW
) -> list:
    """Ledger with the given modules completed / in progress"""
    records = [
        ProgressRecord(module_id=module_id, status=ModuleStatus.COMPLETED, started_at=at, updated_at=at)
        for module_id in completed
    ]
    records += [
        ProgressRecord(module_id=module_id, status=ModuleStatus.IN_PROGRESS, started_at=at, updated_at=at)
        for module_id in in_progress
    ]
    return records


def make_user(user_id: str, name: str = "Learner", completed: Iterable[int] = (), **fields) -> UserAccount:
    return UserAccount(id=user_id, name=name, progress=make_ledger(completed), **fields)


# ============================================================================
# Store & Service Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Keep PBKDF2 cheap in tests"""
    monkeypatch.setattr("bootcamp_tracker.auth.identity.PBKDF2_ITERATIONS", 1000)


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def identity(store):
    return PasswordIdentityProvider(store, min_password_length=6)


@pytest.fixture
def user_service(store, identity):
    return UserService(store, identity)


@pytest.fixture
def progress_service(store, user_service):
    return ProgressService(store, user_service, max_attempts=3)


@pytest.fixture
async def registered_user(user_service):
    """Freshly registered account (default user document written)"""
    return await user_service.register("ada@example.com", "s3cret-pass", "Ada")


@pytest.fixture
def seed_user(store):
    """Write a user document directly to the store"""

    async def _seed(user: UserAccount):
        await store.set_document(USERS_COLLECTION, user.id, user.to_document())
        return user

    return _seed


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def days():
    """Helper: NOW shifted by n days"""
    return lambda n: NOW + timedelta(days=n)
