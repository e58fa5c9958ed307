"""In-process document store"""

import asyncio
import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

from bootcamp_tracker.exceptions import ConcurrentUpdateError, RecordExistsError, RecordNotFoundError
from bootcamp_tracker.store.base import DocumentSnapshot, DocumentStore

logger = logging.getLogger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed store for development and tests.

    Data lives only as long as the process. Callers always receive copies,
    so mutating a snapshot never changes stored state.
    """

    backend_name = "memory"

    def __init__(self):
        super().__init__()
        self._collections: Dict[str, Dict[str, Tuple[Dict[str, Any], int]]] = {}
        self._lock = asyncio.Lock()
        logger.info("InMemoryDocumentStore initialized - data is NOT persisted")

    def _snapshot(self, collection: str, doc_id: str) -> DocumentSnapshot:
        stored = self._collections.get(collection, {}).get(doc_id)
        if stored is None:
            return DocumentSnapshot(id=doc_id, data=None, version=0)
        data, version = stored
        return DocumentSnapshot(id=doc_id, data=copy.deepcopy(data), version=version)

    async def get_document(self, collection: str, doc_id: str) -> DocumentSnapshot:
        return self._snapshot(collection, doc_id)

    async def list_documents(self, collection: str) -> List[DocumentSnapshot]:
        return [self._snapshot(collection, doc_id) for doc_id in self._collections.get(collection, {})]

    async def _write_document(
        self, collection: str, doc_id: str, data: Dict[str, Any]
    ) -> DocumentSnapshot:
        async with self._lock:
            documents = self._collections.setdefault(collection, {})
            _, version = documents.get(doc_id, (None, 0))
            documents[doc_id] = (copy.deepcopy(data), version + 1)
            logger.debug(f"Wrote {collection}/{doc_id} (version {version + 1})")
            return self._snapshot(collection, doc_id)

    async def _insert_document(
        self, collection: str, doc_id: str, data: Dict[str, Any]
    ) -> DocumentSnapshot:
        async with self._lock:
            documents = self._collections.setdefault(collection, {})
            if doc_id in documents:
                raise RecordExistsError(
                    f"Document {collection}/{doc_id} already exists",
                    record_type=collection,
                    record_id=doc_id,
                    operation="create_document",
                )
            documents[doc_id] = (copy.deepcopy(data), 1)
            logger.debug(f"Created {collection}/{doc_id}")
            return self._snapshot(collection, doc_id)

    async def _remove_document(self, collection: str, doc_id: str) -> bool:
        async with self._lock:
            removed = self._collections.get(collection, {}).pop(doc_id, None)
            return removed is not None

    async def _merge_fields(
        self,
        collection: str,
        doc_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int]
    ) -> DocumentSnapshot:
        async with self._lock:
            documents = self._collections.get(collection, {})
            if doc_id not in documents:
                raise RecordNotFoundError(
                    f"Document {collection}/{doc_id} does not exist",
                    record_type=collection,
                    record_id=doc_id,
                    operation="update_fields",
                )

            data, version = documents[doc_id]
            if expected_version is not None and version != expected_version:
                raise ConcurrentUpdateError(
                    f"Document {collection}/{doc_id} is at version {version}, expected {expected_version}",
                    record_id=doc_id,
                    expected_version=expected_version,
                    actual_version=version,
                    operation="update_fields",
                )

            merged = {**data, **copy.deepcopy(fields)}
            documents[doc_id] = (merged, version + 1)
            logger.debug(f"Updated {collection}/{doc_id} fields {sorted(fields)} (version {version + 1})")
            return self._snapshot(collection, doc_id)
