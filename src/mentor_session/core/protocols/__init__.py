"""Contracts for the external collaborators of the session subsystem."""

from .document_store import (
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    DocumentStore,
    FieldFilter,
    WriteBatch,
)
from .identity_provider import AuthStateListener, IdentityProvider
from .local_storage import LocalStorage
from .device_platform import DevicePlatform

__all__ = [
    "SERVER_TIMESTAMP",
    "DocumentSnapshot",
    "DocumentStore",
    "FieldFilter",
    "WriteBatch",
    "AuthStateListener",
    "IdentityProvider",
    "LocalStorage",
    "DevicePlatform",
]
