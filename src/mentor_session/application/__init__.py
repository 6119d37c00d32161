"""Session application services.

Services:
- DeviceIdentity: Stable per-install device id
- TokenCodec: Signed claims bundles and expiry
- TokenManager: Token issuance, persistence and single-flight refresh
- SessionManager: Session record lifecycle
- ActivityHeartbeat: Periodic and lifecycle-triggered activity
- SessionContext: UI-facing facade
"""

from .device_identity import DeviceIdentity
from .token_codec import TokenCodec
from .session_manager import SessionManager
from .token_manager import TokenManager
from .activity_heartbeat import ActivityHeartbeat
from .session_context import SessionContext, SessionStatus

__all__ = [
    "DeviceIdentity",
    "TokenCodec",
    "SessionManager",
    "TokenManager",
    "ActivityHeartbeat",
    "SessionContext",
    "SessionStatus",
]
