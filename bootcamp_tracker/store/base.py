"""Document store interface"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from bootcamp_tracker.store.subscriptions import Callback, Subscription, SubscriptionHub

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
ACCOUNTS_COLLECTION = "accounts"


@dataclass(frozen=True)
class DocumentSnapshot:
    """A document as read at one point in time"""
    id: str
    data: Optional[Dict[str, Any]]
    version: int = 0

    @property
    def exists(self) -> bool:
        return self.data is not None


class DocumentStore(ABC):
    """
    Per-collection JSON documents with versioning and live listeners.

    Every successful write bumps the document's version and notifies
    listeners of that document and of its collection.
    """

    backend_name = "abstract"

    def __init__(self):
        self._hub = SubscriptionHub()

    # ---- backend hooks ----

    @abstractmethod
    async def get_document(self, collection: str, doc_id: str) -> DocumentSnapshot:
        """Read one document (snapshot.exists is False when missing)"""

    @abstractmethod
    async def list_documents(self, collection: str) -> List[DocumentSnapshot]:
        """All documents of a collection, in creation order"""

    @abstractmethod
    async def _write_document(
        self, collection: str, doc_id: str, data: Dict[str, Any]
    ) -> DocumentSnapshot:
        """Create or replace a document"""

    @abstractmethod
    async def _insert_document(
        self, collection: str, doc_id: str, data: Dict[str, Any]
    ) -> DocumentSnapshot:
        """Create a document, RecordExistsError when the id is taken"""

    @abstractmethod
    async def _remove_document(self, collection: str, doc_id: str) -> bool:
        """Delete a document, False when it did not exist"""

    @abstractmethod
    async def _merge_fields(
        self,
        collection: str,
        doc_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int]
    ) -> DocumentSnapshot:
        """Shallow-merge top-level fields into an existing document"""

    async def close(self) -> None:
        """Release backend resources"""

    # ---- public API ----

    async def set_document(
        self, collection: str, doc_id: str, data: Dict[str, Any]
    ) -> DocumentSnapshot:
        snapshot = await self._write_document(collection, doc_id, data)
        await self._notify(collection, snapshot)
        return snapshot

    async def create_document(
        self, collection: str, doc_id: str, data: Dict[str, Any]
    ) -> DocumentSnapshot:
        """
        Write a document only if the id is free (atomic claim)

        Raises:
            RecordExistsError: A document with this id already exists
        """
        snapshot = await self._insert_document(collection, doc_id, data)
        await self._notify(collection, snapshot)
        return snapshot

    async def delete_document(self, collection: str, doc_id: str) -> None:
        if await self._remove_document(collection, doc_id):
            await self._notify(collection, DocumentSnapshot(id=doc_id, data=None, version=0))

    async def update_fields(
        self,
        collection: str,
        doc_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None
    ) -> DocumentSnapshot:
        """
        Update top-level fields of an existing document

        Args:
            collection: Collection name
            doc_id: Document id
            fields: Fields to overwrite (others are kept)
            expected_version: When given, the write only happens if the stored
                version still matches (optimistic concurrency)

        Raises:
            RecordNotFoundError: Document does not exist
            ConcurrentUpdateError: Stored version differs from expected_version
        """
        snapshot = await self._merge_fields(collection, doc_id, fields, expected_version)
        await self._notify(collection, snapshot)
        return snapshot

    async def subscribe(
        self, collection: str, doc_id: str, callback: Callback
    ) -> Subscription:
        """Listen to one document; the current snapshot is delivered immediately"""
        subscription = self._hub.add(("document", collection, doc_id), callback)
        await self._hub.deliver(subscription, await self.get_document(collection, doc_id))
        return subscription

    async def subscribe_collection(
        self, collection: str, callback: Callback
    ) -> Subscription:
        """Listen to a whole collection; callbacks receive the full list of snapshots"""
        subscription = self._hub.add(("collection", collection), callback)
        await self._hub.deliver(subscription, await self.list_documents(collection))
        return subscription

    @property
    def listener_count(self) -> int:
        return self._hub.listener_count()

    async def _notify(self, collection: str, snapshot: DocumentSnapshot) -> None:
        await self._hub.publish(("document", collection, snapshot.id), snapshot)

        collection_key = ("collection", collection)
        if self._hub.has_listeners(collection_key):
            await self._hub.publish(collection_key, await self.list_documents(collection))
