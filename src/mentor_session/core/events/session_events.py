"""Session lifecycle events."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SessionEvent:
    """Base for all session lifecycle events."""
    
    user_id: Optional[str]
    device_id: Optional[str]
    event_timestamp: datetime = field(default_factory=_utcnow, kw_only=True)


@dataclass(frozen=True)
class SessionEstablished(SessionEvent):
    """A device session was validated or created and is now live."""
    
    created: bool = False


@dataclass(frozen=True)
class SessionExpired(SessionEvent):
    """The session is no longer usable; the UI must show "session expired".
    
    Reasons: ``invalid`` (failed validation), ``refresh_failed``,
    ``identity_unavailable``.
    """
    
    reason: str = "invalid"


@dataclass(frozen=True)
class TokensRefreshed(SessionEvent):
    """A new access/refresh pair was minted from the refresh token."""
    
    access_expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class UserLoggedOut(SessionEvent):
    """The user signed out locally, optionally from every device."""
    
    all_devices: bool = False
