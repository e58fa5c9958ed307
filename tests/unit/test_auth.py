"""Unit tests for API key and learner session authentication"""
import pytest
from types import SimpleNamespace
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from bootcamp_tracker.api.auth import (
    configured_api_keys,
    current_account,
    is_valid_api_key,
    require_learner,
    verify_api_key,
)
from bootcamp_tracker.auth.identity import AccountHandle
from bootcamp_tracker.exceptions import SessionNotFoundError


def _credentials(key: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=key)


def _account(uid: str) -> AccountHandle:
    return AccountHandle(uid=uid, email=f"{uid}@example.com", display_name=uid, token=f"token-{uid}")


class TestApiKeys:
    """Test API key loading and checks"""

    def test_keys_split_and_trimmed(self, monkeypatch):
        monkeypatch.setenv("API_KEYS", " key-one, key-two ,,")
        assert configured_api_keys() == ["key-one", "key-two"]

    def test_no_keys_configured(self, monkeypatch):
        monkeypatch.delenv("API_KEYS", raising=False)
        assert configured_api_keys() == []
        assert is_valid_api_key("anything") is False

    def test_is_valid_api_key(self, monkeypatch):
        monkeypatch.setenv("API_KEYS", "key-one")
        assert is_valid_api_key("key-one") is True
        assert is_valid_api_key("key-two") is False
        assert is_valid_api_key("") is False


class TestVerifyApiKey:
    """Test the request dependency"""

    @pytest.mark.asyncio
    async def test_valid_key(self, monkeypatch):
        monkeypatch.setenv("API_KEYS", "key-one")
        assert await verify_api_key(_credentials("key-one")) == "key-one"

    @pytest.mark.asyncio
    async def test_invalid_key(self, monkeypatch):
        monkeypatch.setenv("API_KEYS", "key-one")
        with pytest.raises(HTTPException) as exc_info:
            await verify_api_key(_credentials("wrong"))
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_not_configured(self, monkeypatch):
        monkeypatch.delenv("API_KEYS", raising=False)
        with pytest.raises(HTTPException) as exc_info:
            await verify_api_key(_credentials("key-one"))
        assert exc_info.value.status_code == 503


class TestLearnerSession:
    """Test session resolution and ownership checks"""

    @pytest.mark.asyncio
    async def test_missing_header(self, identity):
        with pytest.raises(SessionNotFoundError):
            await current_account(None, SimpleNamespace(identity=identity))

    @pytest.mark.asyncio
    async def test_token_resolves_to_account(self, identity):
        registered = await identity.register("ada@example.com", "lovelace-1", "Ada")
        services = SimpleNamespace(identity=identity)

        account = await current_account(registered.token, services)

        assert account.uid == registered.uid

    @pytest.mark.asyncio
    async def test_logged_out_token(self, identity):
        registered = await identity.register("ada@example.com", "lovelace-1", "Ada")
        await identity.logout(registered.token)

        with pytest.raises(SessionNotFoundError):
            await current_account(registered.token, SimpleNamespace(identity=identity))

    @pytest.mark.asyncio
    async def test_own_progress_allowed(self):
        account = _account("u1")
        assert await require_learner("u1", account) is account

    @pytest.mark.asyncio
    async def test_other_learner_forbidden(self):
        with pytest.raises(HTTPException) as exc_info:
            await require_learner("u1", _account("u2"))
        assert exc_info.value.status_code == 403
