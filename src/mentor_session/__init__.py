"""mentor-session: client-side session and token lifecycle.

Device-scoped session registration, token issuance and single-flight
refresh, session validation with idle expiry and revocation, and
multi-device logout on top of an identity provider and a document store.
"""

from .__version__ import __version__
from .application import (
    ActivityHeartbeat,
    DeviceIdentity,
    SessionContext,
    SessionManager,
    SessionStatus,
    TokenCodec,
    TokenManager,
)
from .config import LoggingConfig, SessionSettings, get_settings, setup_logging
from .core import (
    AppState,
    AuthUser,
    DeviceInfo,
    DocumentNotFound,
    EventStream,
    IdentityUnavailable,
    MentorSessionError,
    RefreshFailure,
    RefreshState,
    SessionEstablished,
    SessionExpired,
    SessionInvalid,
    SessionRecord,
    Subscription,
    TokenDecodeError,
    TokenState,
    TokensRefreshed,
    TransientStoreError,
    UserLoggedOut,
)
from .module import SessionModule

__all__ = [
    "__version__",
    "ActivityHeartbeat",
    "DeviceIdentity",
    "SessionContext",
    "SessionManager",
    "SessionStatus",
    "TokenCodec",
    "TokenManager",
    "LoggingConfig",
    "SessionSettings",
    "get_settings",
    "setup_logging",
    "AppState",
    "AuthUser",
    "DeviceInfo",
    "DocumentNotFound",
    "EventStream",
    "IdentityUnavailable",
    "MentorSessionError",
    "RefreshFailure",
    "RefreshState",
    "SessionEstablished",
    "SessionExpired",
    "SessionInvalid",
    "SessionRecord",
    "Subscription",
    "TokenDecodeError",
    "TokenState",
    "TokensRefreshed",
    "TransientStoreError",
    "UserLoggedOut",
    "SessionModule",
]
