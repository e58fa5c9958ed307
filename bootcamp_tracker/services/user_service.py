"""
UserService - Account Lifecycle Business Logic

Handles registration, login, logout and the per-user progress document.
Missing user documents are recreated from the identity record instead of
failing (accounts whose first write was lost still work).
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from bootcamp_tracker.auth.identity import AccountHandle, IdentityProvider
from bootcamp_tracker.exceptions import DatabaseError, RecordNotFoundError
from bootcamp_tracker.models.user import UserAccount
from bootcamp_tracker.store.access import store_call
from bootcamp_tracker.store.base import USERS_COLLECTION, DocumentStore

logger = logging.getLogger(__name__)


def default_display_name(email: Optional[str], display_name: Optional[str] = None) -> str:
    """Display name, else the part of the email before '@', else Anonymous"""
    if display_name and display_name.strip():
        return display_name.strip()
    if email and "@" in email:
        return email.split("@", 1)[0]
    return "Anonymous"


def default_user_document(account: AccountHandle, now: datetime) -> dict:
    """Document for a freshly registered learner"""
    user = UserAccount(
        id=account.uid,
        name=default_display_name(account.email, account.display_name),
        email=account.email,
        join_date=now,
    )
    return user.to_document()


class UserService:
    """
    Service for user accounts.

    Responsibilities:
    - Registration / login / logout through the identity provider
    - Creating the default user document
    - Loading user documents (self-healing when absent)
    """

    def __init__(self, store: DocumentStore, identity: IdentityProvider):
        self.store = store
        self.identity = identity

    async def register(self, email: str, password: str, display_name: Optional[str] = None) -> AccountHandle:
        """
        Register an account and write its default user document.

        A failed document write is logged and not raised; the document is
        recreated on the next login or access.
        """
        account = await self.identity.register(email, password, display_name)
        try:
            await self.create_user_document(account)
        except DatabaseError as e:
            logger.error(f"Failed to create user document for {account.uid}: {e}", exc_info=True)
        return account

    async def login(self, email: str, password: str) -> AccountHandle:
        account = await self.identity.login(email, password)
        await self.ensure_user_document(account)
        return account

    async def logout(self, token: str) -> None:
        await self.identity.logout(token)

    async def create_user_document(self, account: AccountHandle, now: Optional[datetime] = None) -> UserAccount:
        now = now or datetime.now(timezone.utc)
        data = default_user_document(account, now)
        await store_call(
            "set_document", USERS_COLLECTION,
            self.store.set_document, USERS_COLLECTION, account.uid, data
        )
        logger.info(f"Created user document for {account.uid}")
        return UserAccount.from_document(account.uid, data)

    async def ensure_user_document(self, account: AccountHandle) -> UserAccount:
        """Return the user document, creating the default one if it is missing"""
        snapshot = await store_call(
            "get_document", USERS_COLLECTION,
            self.store.get_document, USERS_COLLECTION, account.uid
        )
        if snapshot.exists:
            return UserAccount.from_document(account.uid, snapshot.data)

        logger.warning(f"User document missing for {account.uid}, recreating default")
        return await self.create_user_document(account)

    async def load_user(self, user_id: str) -> Tuple[UserAccount, int]:
        """
        Load a user document together with its version

        Raises:
            RecordNotFoundError: Neither a user document nor an account exists
        """
        snapshot = await store_call(
            "get_document", USERS_COLLECTION,
            self.store.get_document, USERS_COLLECTION, user_id
        )
        if snapshot.exists:
            return UserAccount.from_document(user_id, snapshot.data), snapshot.version

        account = await self.identity.get_account(user_id)
        if account is None:
            raise RecordNotFoundError(
                f"No user document or account for {user_id}",
                record_type="User",
                record_id=user_id,
                operation="load_user",
            )

        logger.warning(f"User document missing for {user_id}, recreating default")
        await self.create_user_document(account)
        return await self.load_user(user_id)

    async def get_user(self, user_id: str) -> UserAccount:
        user, _ = await self.load_user(user_id)
        return user
