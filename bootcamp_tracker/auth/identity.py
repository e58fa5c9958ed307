"""
Identity Provider

Email/password accounts kept in the document store:
- `accounts/{uid}`: email, display name, salted PBKDF2 hash
- `account_emails/{email}`: uid lookup, claimed with a create-only write

Sessions are opaque random tokens held in process memory; restarting the
service logs everyone out. Session listeners receive the AccountHandle on
register/login and None on logout.
"""

import hashlib
import hmac
import logging
import re
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Dict, Optional
from uuid import uuid4

from bootcamp_tracker.config import MIN_PASSWORD_LENGTH
from bootcamp_tracker.exceptions import (
    DatabaseError,
    EmailAlreadyInUseError,
    IdentityNetworkError,
    InvalidCredentialsError,
    InvalidEmailError,
    RecordExistsError,
    SessionNotFoundError,
    WeakPasswordError,
)
from bootcamp_tracker.store.access import store_call
from bootcamp_tracker.store.base import ACCOUNTS_COLLECTION, DocumentStore
from bootcamp_tracker.store.subscriptions import Callback, Subscription, SubscriptionHub

logger = logging.getLogger(__name__)

ACCOUNT_EMAILS_COLLECTION = "account_emails"

PBKDF2_ITERATIONS = 260_000
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_SESSION_KEY = "session"


@dataclass(frozen=True)
class AccountHandle:
    """Signed-in account as returned by register/login"""
    uid: str
    email: str
    display_name: Optional[str] = None
    token: Optional[str] = None


def hash_password(password: str, salt: Optional[str] = None, iterations: Optional[int] = None) -> Dict[str, object]:
    """
    Salted PBKDF2-SHA256 hash

    Returns:
        {'hash': hex str, 'salt': hex str, 'iterations': int}
    """
    salt = salt or secrets.token_hex(16)
    iterations = iterations or PBKDF2_ITERATIONS
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), iterations)
    return {"hash": digest.hex(), "salt": salt, "iterations": iterations}


def verify_password(password: str, stored: Dict[str, object]) -> bool:
    candidate = hash_password(password, str(stored["salt"]), int(stored["iterations"]))
    return hmac.compare_digest(candidate["hash"], str(stored["hash"]))


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class IdentityProvider(ABC):
    """Session/identity boundary used by the user service"""

    @abstractmethod
    async def register(self, email: str, password: str, display_name: Optional[str] = None) -> AccountHandle:
        ...

    @abstractmethod
    async def login(self, email: str, password: str) -> AccountHandle:
        ...

    @abstractmethod
    async def logout(self, token: str) -> None:
        ...

    @abstractmethod
    async def resolve_session(self, token: str) -> AccountHandle:
        ...

    @abstractmethod
    async def get_account(self, uid: str) -> Optional[AccountHandle]:
        ...

    @abstractmethod
    def on_session_change(self, callback: Callback) -> Subscription:
        ...


class PasswordIdentityProvider(IdentityProvider):
    """Email/password identity provider on top of a DocumentStore"""

    def __init__(self, store: DocumentStore, min_password_length: int = MIN_PASSWORD_LENGTH):
        self.store = store
        self.min_password_length = min_password_length
        self._sessions: Dict[str, AccountHandle] = {}
        self._hub = SubscriptionHub()

    async def register(self, email: str, password: str, display_name: Optional[str] = None) -> AccountHandle:
        """
        Create an account and sign it in

        Raises:
            InvalidEmailError, WeakPasswordError, EmailAlreadyInUseError,
            IdentityNetworkError (store unreachable)
        """
        email = normalize_email(email)
        self._validate_email(email)
        if len(password or "") < self.min_password_length:
            raise WeakPasswordError(
                f"Password shorter than {self.min_password_length} characters",
                min_length=self.min_password_length,
                operation="register",
            )

        uid = uuid4().hex
        # One account per email: the create-only claim decides concurrent registrations
        try:
            await store_call(
                "create_document", ACCOUNT_EMAILS_COLLECTION,
                self.store.create_document, ACCOUNT_EMAILS_COLLECTION, email, {"uid": uid}
            )
        except RecordExistsError:
            raise EmailAlreadyInUseError(f"Email {email} already registered", operation="register")
        except DatabaseError as e:
            raise IdentityNetworkError(f"Registration failed: {e.message}", operation="register", cause=e)

        try:
            await store_call(
                "set_document", ACCOUNTS_COLLECTION,
                self.store.set_document, ACCOUNTS_COLLECTION, uid, {
                    "email": email,
                    "displayName": display_name,
                    "password": hash_password(password),
                    "createdAt": datetime.now(timezone.utc).isoformat(),
                }
            )
        except DatabaseError as e:
            await self._release_email(email)
            raise IdentityNetworkError(f"Registration failed: {e.message}", operation="register", cause=e)

        logger.info(f"Registered account {uid}")
        return await self._start_session(AccountHandle(uid=uid, email=email, display_name=display_name))

    async def login(self, email: str, password: str) -> AccountHandle:
        """
        Verify credentials and open a session

        Raises:
            InvalidEmailError, InvalidCredentialsError, IdentityNetworkError
        """
        email = normalize_email(email)
        self._validate_email(email)

        try:
            lookup = await store_call(
                "get_document", ACCOUNT_EMAILS_COLLECTION,
                self.store.get_document, ACCOUNT_EMAILS_COLLECTION, email
            )
            account = None
            if lookup.exists:
                account = await store_call(
                    "get_document", ACCOUNTS_COLLECTION,
                    self.store.get_document, ACCOUNTS_COLLECTION, lookup.data["uid"]
                )
        except DatabaseError as e:
            raise IdentityNetworkError(f"Login failed: {e.message}", operation="login", cause=e)

        if account is None or not account.exists or not verify_password(password or "", account.data["password"]):
            raise InvalidCredentialsError(f"Invalid credentials for {email}", operation="login")

        logger.info(f"Account {account.id} logged in")
        return await self._start_session(AccountHandle(
            uid=account.id,
            email=account.data["email"],
            display_name=account.data.get("displayName"),
        ))

    async def logout(self, token: str) -> None:
        handle = self._sessions.pop(token, None)
        if handle is None:
            raise SessionNotFoundError("Unknown session token", operation="logout")
        logger.info(f"Account {handle.uid} logged out")
        await self._hub.publish(_SESSION_KEY, None)

    async def resolve_session(self, token: str) -> AccountHandle:
        handle = self._sessions.get(token)
        if handle is None:
            raise SessionNotFoundError("Unknown session token", operation="resolve_session")
        return handle

    async def get_account(self, uid: str) -> Optional[AccountHandle]:
        """Account by uid, None when it does not exist"""
        try:
            snapshot = await store_call(
                "get_document", ACCOUNTS_COLLECTION,
                self.store.get_document, ACCOUNTS_COLLECTION, uid
            )
        except DatabaseError as e:
            raise IdentityNetworkError(f"Account lookup failed: {e.message}", operation="get_account", cause=e)

        if not snapshot.exists:
            return None
        return AccountHandle(uid=uid, email=snapshot.data["email"], display_name=snapshot.data.get("displayName"))

    def on_session_change(self, callback: Callback) -> Subscription:
        return self._hub.add(_SESSION_KEY, callback)

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    async def _start_session(self, handle: AccountHandle) -> AccountHandle:
        token = secrets.token_urlsafe(32)
        handle = replace(handle, token=token)
        self._sessions[token] = handle
        await self._hub.publish(_SESSION_KEY, handle)
        return handle

    async def _release_email(self, email: str) -> None:
        """Undo an email claim whose account could not be written"""
        try:
            await store_call(
                "delete_document", ACCOUNT_EMAILS_COLLECTION,
                self.store.delete_document, ACCOUNT_EMAILS_COLLECTION, email
            )
        except DatabaseError as e:
            logger.error(f"Could not release email claim {email}: {e}", exc_info=True)

    def _validate_email(self, email: str) -> None:
        if not _EMAIL_PATTERN.match(email):
            raise InvalidEmailError(f"Malformed email address: {email!r}", operation="validate_email")
