"""Versioned document storage with change listeners"""

from bootcamp_tracker.store.base import (
    ACCOUNTS_COLLECTION,
    USERS_COLLECTION,
    DocumentSnapshot,
    DocumentStore,
)
from bootcamp_tracker.store.memory import InMemoryDocumentStore
from bootcamp_tracker.store.subscriptions import Subscription, SubscriptionHub

__all__ = [
    "ACCOUNTS_COLLECTION",
    "USERS_COLLECTION",
    "DocumentSnapshot",
    "DocumentStore",
    "InMemoryDocumentStore",
    "Subscription",
    "SubscriptionHub",
]
