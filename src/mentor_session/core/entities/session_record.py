"""Session record domain entity."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from ..value_objects import DeviceInfo


def _as_utc(value: Any) -> Optional[datetime]:
    """Coerce a stored timestamp (datetime or ISO string) to an aware datetime."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class SessionRecord:
    """Server-side record of one authenticated device's session.
    
    Handles ONLY session record state and the liveness rule.
    Does not talk to the document store - that's the session manager's job.
    """
    
    # Core Identity
    session_id: str
    user_id: str
    device_info: Optional[DeviceInfo] = None
    
    # Session Lifecycle
    created_at: Optional[datetime] = None
    last_activity: Optional[datetime] = None
    deactivated_at: Optional[datetime] = None
    
    # Session State
    is_active: bool = True
    token_hashes: Dict[str, str] = field(default_factory=dict)
    
    def __post_init__(self) -> None:
        """Ensure timezone awareness for timestamps."""
        self.created_at = _as_utc(self.created_at)
        self.last_activity = _as_utc(self.last_activity)
        self.deactivated_at = _as_utc(self.deactivated_at)
    
    @property
    def device_id(self) -> Optional[str]:
        return self.device_info.device_id if self.device_info else None
    
    def idle_for(self, now: Optional[datetime] = None) -> Optional[timedelta]:
        """Time elapsed since the last activity touch."""
        if self.last_activity is None:
            return None
        now = now or datetime.now(timezone.utc)
        return now - self.last_activity
    
    def is_idle_expired(self, idle_timeout: timedelta, now: Optional[datetime] = None) -> bool:
        """Check if the session has gone without activity for longer than the timeout."""
        idle = self.idle_for(now)
        return idle is not None and idle > idle_timeout
    
    def is_live(self, idle_timeout: timedelta, now: Optional[datetime] = None) -> bool:
        """A session is live iff it is active and not idle-expired."""
        return self.is_active and not self.is_idle_expired(idle_timeout, now)
    
    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "SessionRecord":
        """Build a record from its stored document shape."""
        device_data = data.get("deviceInfo")
        return cls(
            session_id=doc_id,
            user_id=data["userId"],
            device_info=DeviceInfo.from_document(device_data) if device_data else None,
            created_at=data.get("createdAt"),
            last_activity=data.get("lastActivity"),
            deactivated_at=data.get("deactivatedAt"),
            is_active=bool(data.get("isActive", False)),
            token_hashes=dict(data.get("tokenHashes") or {}),
        )
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert record to dictionary representation."""
        return {
            'id': self.session_id,
            'userId': self.user_id,
            'deviceInfo': self.device_info.to_document() if self.device_info else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'lastActivity': self.last_activity.isoformat() if self.last_activity else None,
            'deactivatedAt': self.deactivated_at.isoformat() if self.deactivated_at else None,
            'isActive': self.is_active,
        }
    
    def __repr__(self) -> str:
        return (
            f"SessionRecord(session_id={self.session_id}, user_id={self.user_id}, "
            f"is_active={self.is_active}, last_activity={self.last_activity})"
        )
