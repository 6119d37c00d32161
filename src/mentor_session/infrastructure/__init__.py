"""Infrastructure implementations of the session subsystem's collaborators."""

from .adapters import (
    HostDevicePlatform,
    InMemoryIdentityProvider,
    JsonFileLocalStorage,
    MemoryLocalStorage,
)
from .repositories import MemoryDocumentStore, RedisDocumentStore

__all__ = [
    "HostDevicePlatform",
    "InMemoryIdentityProvider",
    "JsonFileLocalStorage",
    "MemoryLocalStorage",
    "MemoryDocumentStore",
    "RedisDocumentStore",
]
