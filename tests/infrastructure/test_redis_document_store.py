"""Tests for the Redis document store."""

from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock
from redis.exceptions import ConnectionError as RedisConnectionError

from mentor_session.core.exceptions import TransientStoreError
from mentor_session.core.protocols import FieldFilter
from mentor_session.infrastructure import RedisDocumentStore
from mentor_session.infrastructure.repositories.redis_document_store import (
    deserialize_document,
    serialize_document,
)

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_redis():
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.smembers = AsyncMock(return_value=set())
    client.mget = AsyncMock(return_value=[])
    return client


class TestSerialization:

    def test_datetimes_survive_serialization(self):
        document = {"lastActivity": NOW, "deviceInfo": {"deviceId": "device-a"}, "isActive": True}

        assert deserialize_document(serialize_document(document).encode("utf-8")) == document


class TestRedisDocumentStore:
    """Test key layout, reads and error wrapping."""

    def test_requires_client(self):
        with pytest.raises(ValueError):
            RedisDocumentStore(None)

    @pytest.mark.asyncio
    async def test_get_reads_prefixed_key(self, mock_redis):
        mock_redis.get.return_value = serialize_document({"userId": "user-1", "lastActivity": NOW})
        store = RedisDocumentStore(mock_redis, key_prefix="test")

        snapshot = await store.get("userSessions", "user-1_device-a")

        mock_redis.get.assert_awaited_once_with("test:userSessions:user-1_device-a")
        assert snapshot.data["lastActivity"] == NOW

    @pytest.mark.asyncio
    async def test_get_missing(self, mock_redis):
        store = RedisDocumentStore(mock_redis)
        assert await store.get("userSessions", "nope") is None

    @pytest.mark.asyncio
    async def test_redis_errors_become_transient(self, mock_redis):
        mock_redis.get.side_effect = RedisConnectionError("connection refused")
        store = RedisDocumentStore(mock_redis)

        with pytest.raises(TransientStoreError) as exc_info:
            await store.get("userSessions", "user-1_device-a")

        assert exc_info.value.operation == "get"
        assert exc_info.value.doc_id == "user-1_device-a"

    @pytest.mark.asyncio
    async def test_query_filters_client_side(self, mock_redis):
        mock_redis.smembers.return_value = {b"s1", b"s2", b"s3"}
        mock_redis.mget.return_value = [
            serialize_document({"userId": "user-1", "isActive": True, "lastActivity": NOW}),
            serialize_document({"userId": "user-2", "isActive": True, "lastActivity": NOW}),
            None,
        ]
        store = RedisDocumentStore(mock_redis, key_prefix="test")

        results = await store.query("userSessions", [FieldFilter("userId", "==", "user-1")])

        mock_redis.smembers.assert_awaited_once_with("test:userSessions:_ids")
        mock_redis.mget.assert_awaited_once_with([
            "test:userSessions:s1",
            "test:userSessions:s2",
            "test:userSessions:s3",
        ])
        assert [r.id for r in results] == ["s1"]

    @pytest.mark.asyncio
    async def test_query_empty_collection(self, mock_redis):
        store = RedisDocumentStore(mock_redis)

        assert await store.query("userSessions") == []
        mock_redis.mget.assert_not_awaited()
