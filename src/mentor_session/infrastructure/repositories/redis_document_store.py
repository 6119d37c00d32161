"""Redis document store for the session subsystem."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError

from ...core.exceptions import DocumentNotFound, TransientStoreError
from ...core.protocols import DocumentSnapshot, FieldFilter
from .document_ops import apply_field_updates, deep_merge, resolve_server_timestamps, run_query

logger = logging.getLogger(__name__)

_DATETIME_TAG = "__datetime__"


def _encode_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_DATETIME_TAG: value.isoformat()}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _decode_hook(obj: Dict[str, Any]) -> Any:
    if len(obj) == 1 and _DATETIME_TAG in obj:
        return datetime.fromisoformat(obj[_DATETIME_TAG])
    return obj


def serialize_document(data: Mapping[str, Any]) -> str:
    """Serialize a document to JSON, tagging datetimes so they round-trip."""
    return json.dumps(data, default=_encode_default)


def deserialize_document(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    return json.loads(raw, object_hook=_decode_hook)


class RedisWriteBatch:
    """Updates committed in one WATCH/MULTI/EXEC transaction."""

    def __init__(self, store: "RedisDocumentStore"):
        self._store = store
        self._updates: List[Tuple[str, str, Dict[str, Any]]] = []

    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> "RedisWriteBatch":
        self._updates.append((collection, doc_id, dict(fields)))
        return self

    def __len__(self) -> int:
        return len(self._updates)

    async def commit(self) -> None:
        await self._store._apply_batch(self._updates)


class RedisDocumentStore:
    """Redis-backed document store.

    Handles ONLY document persistence. Each document is a JSON string at
    ``{prefix}:{collection}:{doc_id}``; a set at ``{prefix}:{collection}:_ids``
    indexes the collection for queries. Read-modify-write operations run
    under WATCH so concurrent writers retry instead of clobbering.
    ``SERVER_TIMESTAMP`` resolves to the Redis server clock.
    """

    def __init__(self, redis_client: Redis, key_prefix: str = "mentor_session", max_retries: int = 5):
        """Initialize Redis document store.

        Args:
            redis_client: redis.asyncio client instance
            key_prefix: Prefix for every key written by the store
            max_retries: WATCH conflicts tolerated before giving up
        """
        if redis_client is None:
            raise ValueError("Redis client is required")
        self.redis = redis_client
        self.key_prefix = key_prefix
        self.max_retries = max_retries

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "mentor_session") -> "RedisDocumentStore":
        return cls(Redis.from_url(url), key_prefix=key_prefix)

    async def aclose(self) -> None:
        await self.redis.aclose()

    def _doc_key(self, collection: str, doc_id: str) -> str:
        return f"{self.key_prefix}:{collection}:{doc_id}"

    def _index_key(self, collection: str) -> str:
        return f"{self.key_prefix}:{collection}:_ids"

    async def _server_now(self) -> datetime:
        seconds, microseconds = await self.redis.time()
        return datetime.fromtimestamp(seconds + microseconds / 1_000_000, tz=timezone.utc)

    async def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        try:
            raw = await self.redis.get(self._doc_key(collection, doc_id))
        except RedisError as e:
            raise TransientStoreError.wrap(e, "get", collection, doc_id) from e
        if raw is None:
            return None
        return DocumentSnapshot(id=doc_id, data=deserialize_document(raw))

    async def set(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        merge: bool = False
    ) -> None:
        def mutate(current: Optional[Dict[str, Any]], now: datetime) -> Dict[str, Any]:
            resolved = resolve_server_timestamps(data, now)
            if merge and current is not None:
                return deep_merge(current, resolved)
            return resolved

        await self._read_modify_write("set", [(collection, doc_id, mutate)])

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        def mutate(current: Optional[Dict[str, Any]], now: datetime) -> Dict[str, Any]:
            if current is None:
                raise DocumentNotFound(collection, doc_id)
            return apply_field_updates(current, resolve_server_timestamps(fields, now))

        await self._read_modify_write("update", [(collection, doc_id, mutate)])

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Optional[str] = None,
        descending: bool = False
    ) -> List[DocumentSnapshot]:
        """Scan the collection index and filter client-side."""
        try:
            ids = sorted(
                member.decode("utf-8") if isinstance(member, bytes) else member
                for member in await self.redis.smembers(self._index_key(collection))
            )
            if not ids:
                return []
            raws = await self.redis.mget([self._doc_key(collection, doc_id) for doc_id in ids])
        except RedisError as e:
            raise TransientStoreError.wrap(e, "query", collection) from e

        documents = {
            doc_id: deserialize_document(raw)
            for doc_id, raw in zip(ids, raws)
            if raw is not None
        }
        return run_query(documents, filters, order_by, descending)

    def batch(self) -> RedisWriteBatch:
        return RedisWriteBatch(self)

    async def _apply_batch(self, updates: List[Tuple[str, str, Dict[str, Any]]]) -> None:
        if not updates:
            return

        def make_mutation(collection: str, doc_id: str, fields: Dict[str, Any]):
            def mutate(current: Optional[Dict[str, Any]], now: datetime) -> Dict[str, Any]:
                if current is None:
                    raise DocumentNotFound(collection, doc_id)
                return apply_field_updates(current, resolve_server_timestamps(fields, now))
            return mutate

        await self._read_modify_write("batch", [
            (collection, doc_id, make_mutation(collection, doc_id, fields))
            for collection, doc_id, fields in updates
        ])
        logger.debug(f"Committed batch of {len(updates)} updates")

    async def _read_modify_write(
        self,
        operation: str,
        mutations: List[Tuple[str, str, Callable[[Optional[Dict[str, Any]], datetime], Dict[str, Any]]]]
    ) -> None:
        """Apply mutations to one or more documents in a single optimistic transaction.

        Raises:
            DocumentNotFound: If a mutation requires an existing document
            TransientStoreError: On Redis failure or persistent WATCH conflicts
        """
        keys = [self._doc_key(collection, doc_id) for collection, doc_id, _ in mutations]
        first_collection, first_doc_id, _ = mutations[0]

        for attempt in range(self.max_retries):
            try:
                async with self.redis.pipeline(transaction=True) as pipe:
                    await pipe.watch(*keys)
                    raws = [await pipe.get(key) for key in keys]
                    now = await self._server_now()

                    updated = [
                        mutate(deserialize_document(raw) if raw is not None else None, now)
                        for (_, _, mutate), raw in zip(mutations, raws)
                    ]

                    pipe.multi()
                    for (collection, doc_id, _), key, document in zip(mutations, keys, updated):
                        pipe.set(key, serialize_document(document))
                        pipe.sadd(self._index_key(collection), doc_id)
                    await pipe.execute()
                    return
            except WatchError:
                logger.debug(f"{operation} conflict on {keys}, retry {attempt + 1}")
                continue
            except RedisError as e:
                raise TransientStoreError.wrap(e, operation, first_collection, first_doc_id) from e

        raise TransientStoreError(
            f"{operation} gave up after {self.max_retries} conflicting writes",
            operation=operation,
            collection=first_collection,
            doc_id=first_doc_id,
        )
