"""Document store implementations."""

from .memory_document_store import MemoryDocumentStore, MemoryWriteBatch
from .redis_document_store import RedisDocumentStore, RedisWriteBatch

__all__ = [
    "MemoryDocumentStore",
    "MemoryWriteBatch",
    "RedisDocumentStore",
    "RedisWriteBatch",
]
