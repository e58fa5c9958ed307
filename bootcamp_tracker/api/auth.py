"""
Request authentication

Two layers:
- Client API key: `Authorization: Bearer <key>`, checked against API_KEYS
- Learner session: `X-Session-Token: <token>` from register/login, required
  for writes to a learner's own progress
"""
import os
import logging
from typing import List, Optional
from fastapi import Depends, Header, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from bootcamp_tracker.auth.identity import AccountHandle
from bootcamp_tracker.exceptions import SessionNotFoundError
from bootcamp_tracker.services.container import ServiceContainer, get_container

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer()

SESSION_HEADER = "X-Session-Token"


def get_services() -> ServiceContainer:
    return get_container()


def configured_api_keys() -> List[str]:
    """Client keys from the comma-separated API_KEYS variable"""
    raw = os.getenv("API_KEYS", "")
    keys = [key.strip() for key in raw.split(",") if key.strip()]
    if not keys:
        logger.warning("API_KEYS is empty, every client will be rejected")
    return keys


def is_valid_api_key(api_key: str) -> bool:
    return bool(api_key) and api_key in configured_api_keys()


async def verify_api_key(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme)
) -> str:
    """
    Check the client API key

    Raises:
        HTTPException: 503 when no keys are configured, 401 for an unknown key
    """
    api_key = credentials.credentials
    keys = configured_api_keys()

    if not keys:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API authentication not configured"
        )

    if api_key not in keys:
        logger.warning(f"Rejected client key {api_key[:6]}...")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key"
        )

    return api_key


async def current_account(
    session_token: Optional[str] = Header(default=None, alias=SESSION_HEADER),
    services: ServiceContainer = Depends(get_services)
) -> AccountHandle:
    """
    Signed-in learner for this request

    Raises:
        SessionNotFoundError: Header missing, or the token is logged out (401)
    """
    if not session_token:
        raise SessionNotFoundError(f"Missing {SESSION_HEADER} header", operation="current_account")
    return await services.identity.resolve_session(session_token)


async def require_learner(
    user_id: str,
    account: AccountHandle = Depends(current_account)
) -> AccountHandle:
    """Only the learner themselves may write to their progress"""
    if account.uid != user_id:
        logger.warning(f"Account {account.uid} tried to write progress of {user_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Session does not belong to this learner"
        )
    return account
