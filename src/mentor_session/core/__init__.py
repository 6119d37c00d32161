"""Core session domain objects.

Components:
- value_objects: Immutable session/token value objects
- exceptions: Session-specific domain exceptions
- protocols: Contracts for the identity provider, document store,
  local storage and device platform
- entities: The session record
- events: Session lifecycle events and their subscription stream

The core has no third-party dependencies.
"""

from .enums import AppState, RefreshState, TokenState, TokenType
from .value_objects import AuthUser, DeviceInfo, SessionKey, TokenPair, StoredTokens
from .entities import SessionRecord
from .exceptions import (
    MentorSessionError,
    IdentityUnavailable,
    TokenDecodeError,
    RefreshFailure,
    SessionInvalid,
    TransientStoreError,
    DocumentNotFound,
)
from .events import (
    EventStream,
    Subscription,
    SessionEvent,
    SessionEstablished,
    SessionExpired,
    TokensRefreshed,
    UserLoggedOut,
)
from .protocols import (
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    DocumentStore,
    FieldFilter,
    WriteBatch,
    IdentityProvider,
    LocalStorage,
    DevicePlatform,
)

__all__ = [
    # Enums
    "AppState",
    "RefreshState",
    "TokenState",
    "TokenType",
    
    # Value Objects
    "AuthUser",
    "DeviceInfo",
    "SessionKey",
    "TokenPair",
    "StoredTokens",
    
    # Entities
    "SessionRecord",
    
    # Exceptions
    "MentorSessionError",
    "IdentityUnavailable",
    "TokenDecodeError",
    "RefreshFailure",
    "SessionInvalid",
    "TransientStoreError",
    "DocumentNotFound",
    
    # Events
    "EventStream",
    "Subscription",
    "SessionEvent",
    "SessionEstablished",
    "SessionExpired",
    "TokensRefreshed",
    "UserLoggedOut",
    
    # Protocols
    "SERVER_TIMESTAMP",
    "DocumentSnapshot",
    "DocumentStore",
    "FieldFilter",
    "WriteBatch",
    "IdentityProvider",
    "LocalStorage",
    "DevicePlatform",
]
