"""Token refresh failure exception."""

from typing import Any, Dict, Optional

from .base import MentorSessionError


class RefreshFailure(MentorSessionError):
    """Raised when an access token cannot be minted from the refresh token.
    
    By the time this is raised local tokens have been cleared and the session
    record deactivated. The caller must force re-authentication.
    """
    
    def __init__(
        self,
        message: str = "Token refresh failed",
        *,
        reason: Optional[str] = None,
        user_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = {"reason": reason, "user_id": user_id}
        details.update(context or {})
        super().__init__(message, error_code="REFRESH_FAILURE", details=details)
        self.reason = reason
        self.user_id = user_id
    
    @classmethod
    def missing_refresh_token(cls) -> "RefreshFailure":
        return cls("No refresh token available", reason="missing_refresh_token")
    
    @classmethod
    def refresh_token_expired(cls, user_id: Optional[str] = None) -> "RefreshFailure":
        return cls("Refresh token is invalid or expired", reason="refresh_token_expired", user_id=user_id)
    
    @classmethod
    def not_authenticated(cls) -> "RefreshFailure":
        return cls("No authenticated user", reason="not_authenticated")
    
    @classmethod
    def session_not_live(cls, user_id: str) -> "RefreshFailure":
        return cls("Session is not active", reason="session_not_live", user_id=user_id)
    
    @classmethod
    def user_record_missing(cls, user_id: str) -> "RefreshFailure":
        return cls("User data not found", reason="user_record_missing", user_id=user_id)
    
    @property
    def is_session_revoked(self) -> bool:
        """Check if the refresh failed because the session is no longer live."""
        return self.reason == "session_not_live"
