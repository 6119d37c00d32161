"""Session validation failure exception."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .base import MentorSessionError, mask_identifier


class SessionInvalid(MentorSessionError):
    """Exception raised when session validation fails.
    
    Surfaced to the UI layer as "session expired" and always followed by a
    forced sign-out.
    """
    
    def __init__(
        self,
        message: str = "Session is invalid",
        *,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
        reason: Optional[str] = None,
        last_activity: Optional[datetime] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        """Initialize session validation failure exception.
        
        Args:
            message: Human-readable error message
            session_id: Session record id (masked for logs)
            user_id: User identifier associated with session
            reason: Specific reason for invalidity
            last_activity: Last recorded activity timestamp
            context: Additional context for debugging
        """
        if last_activity and last_activity.tzinfo is None:
            last_activity = last_activity.replace(tzinfo=timezone.utc)
        
        details = {
            'session_id': mask_identifier(session_id),
            'user_id': user_id,
            'reason': reason,
            'last_activity': last_activity.isoformat() if last_activity else None,
            **(context or {})
        }
        super().__init__(message, error_code="SESSION_INVALID", details=details)
        
        self.session_id = session_id
        self.user_id = user_id
        self.reason = reason
        self.last_activity = last_activity
    
    @property
    def is_revoked(self) -> bool:
        """Check if session was explicitly deactivated."""
        return self.reason == "revoked"
    
    @property
    def is_idle_expired(self) -> bool:
        """Check if session was invalidated by idle expiry."""
        return self.reason == "idle_expired"
    
    @property
    def is_not_found(self) -> bool:
        """Check if session was not found."""
        return self.reason == "not_found"
    
    @classmethod
    def not_found(cls, session_id: str, user_id: Optional[str] = None) -> 'SessionInvalid':
        """Create exception for session not found."""
        return cls(
            message="Session not found",
            session_id=session_id,
            user_id=user_id,
            reason="not_found"
        )
    
    @classmethod
    def revoked(cls, session_id: str, user_id: Optional[str] = None) -> 'SessionInvalid':
        """Create exception for a deactivated session."""
        return cls(
            message="Session has been revoked",
            session_id=session_id,
            user_id=user_id,
            reason="revoked"
        )
    
    @classmethod
    def idle_expired(
        cls,
        session_id: str,
        last_activity: datetime,
        timeout_days: int,
        user_id: Optional[str] = None
    ) -> 'SessionInvalid':
        """Create exception for idle expiry."""
        return cls(
            message=f"Session idle for more than {timeout_days} days",
            session_id=session_id,
            user_id=user_id,
            reason="idle_expired",
            last_activity=last_activity,
            context={'timeout_days': timeout_days}
        )
    
    def __str__(self) -> str:
        """String representation with session context."""
        base_msg = super().__str__()
        
        context_parts = []
        if self.session_id:
            context_parts.append(f"session={mask_identifier(self.session_id)}")
        if self.reason:
            context_parts.append(f"reason={self.reason}")
        
        if context_parts:
            return f"{base_msg} ({', '.join(context_parts)})"
        
        return base_msg
