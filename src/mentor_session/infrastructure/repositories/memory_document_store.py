"""Memory document store.

ONLY in-memory implementation - implements the document store contract
for development, testing, and single-process runs.
"""

import asyncio
import copy
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ...core.exceptions import DocumentNotFound
from ...core.protocols import DocumentSnapshot, FieldFilter
from .document_ops import apply_field_updates, deep_merge, resolve_server_timestamps, run_query

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryWriteBatch:
    """Queued updates applied under the store lock in one step."""

    def __init__(self, store: "MemoryDocumentStore"):
        self._store = store
        self._updates: List[Tuple[str, str, Dict[str, Any]]] = []
        self._committed = False

    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> "MemoryWriteBatch":
        if self._committed:
            raise RuntimeError("Write batch already committed")
        self._updates.append((collection, doc_id, dict(fields)))
        return self

    def __len__(self) -> int:
        return len(self._updates)

    async def commit(self) -> None:
        if self._committed:
            raise RuntimeError("Write batch already committed")
        self._committed = True
        await self._store._apply_batch(self._updates)


class MemoryDocumentStore:
    """Dict-backed document store.

    Every call yields to the event loop (optionally sleeping ``latency``
    seconds) so interleavings match a remote store. ``operations`` records
    ``(operation, collection, doc_id)`` for each completed write or read.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow, latency: float = 0.0):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self._lock = asyncio.Lock()
        self._clock = clock
        self.latency = latency
        self.operations: List[Tuple[str, str, Optional[str]]] = []

    async def _yield(self) -> None:
        await asyncio.sleep(self.latency)

    def _record(self, operation: str, collection: str, doc_id: Optional[str]) -> None:
        self.operations.append((operation, collection, doc_id))

    def count(self, operation: str, collection: Optional[str] = None) -> int:
        """Number of recorded calls of one operation, optionally within a collection."""
        return sum(
            1 for op, coll, _ in self.operations
            if op == operation and (collection is None or coll == collection)
        )

    async def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        await self._yield()
        async with self._lock:
            self._record("get", collection, doc_id)
            data = self._collections[collection].get(doc_id)
            if data is None:
                return None
            return DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))

    async def set(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        merge: bool = False
    ) -> None:
        await self._yield()
        async with self._lock:
            resolved = resolve_server_timestamps(data, self._clock())
            documents = self._collections[collection]
            if merge and doc_id in documents:
                deep_merge(documents[doc_id], resolved)
            else:
                documents[doc_id] = resolved
            self._record("set", collection, doc_id)

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        await self._yield()
        async with self._lock:
            documents = self._collections[collection]
            if doc_id not in documents:
                raise DocumentNotFound(collection, doc_id)
            apply_field_updates(documents[doc_id], resolve_server_timestamps(fields, self._clock()))
            self._record("update", collection, doc_id)

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Optional[str] = None,
        descending: bool = False
    ) -> List[DocumentSnapshot]:
        await self._yield()
        async with self._lock:
            self._record("query", collection, None)
            return run_query(self._collections[collection], filters, order_by, descending)

    def batch(self) -> MemoryWriteBatch:
        return MemoryWriteBatch(self)

    async def _apply_batch(self, updates: List[Tuple[str, str, Dict[str, Any]]]) -> None:
        await self._yield()
        async with self._lock:
            for collection, doc_id, _ in updates:
                if doc_id not in self._collections[collection]:
                    raise DocumentNotFound(collection, doc_id)

            now = self._clock()
            for collection, doc_id, fields in updates:
                apply_field_updates(
                    self._collections[collection][doc_id],
                    resolve_server_timestamps(fields, now),
                )
            self._record("batch", "*", None)
            logger.debug(f"Committed batch of {len(updates)} updates")

    def seed(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        """Write a document synchronously, bypassing the journal (fixtures, local runs)."""
        self._collections[collection][doc_id] = resolve_server_timestamps(data, self._clock())

    def dump(self, collection: str) -> Dict[str, Dict[str, Any]]:
        """Deep copy of a collection's documents, keyed by id."""
        return copy.deepcopy(dict(self._collections.get(collection, {})))
