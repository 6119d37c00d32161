"""Device identity resolution failure exception."""

from typing import Optional

from .base import MentorSessionError


class IdentityUnavailable(MentorSessionError):
    """Raised when the per-install device id cannot be resolved.
    
    Fatal to session initialization: the caller falls back to "no device id"
    and requires a fresh sign-in.
    """
    
    def __init__(
        self,
        message: str = "Device identity could not be resolved",
        *,
        source: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            error_code="IDENTITY_UNAVAILABLE",
            details={"source": source},
        )
        self.source = source
    
    @classmethod
    def from_storage(cls, error: Exception) -> "IdentityUnavailable":
        """Create exception for a local storage failure."""
        return cls(f"Device id storage failed: {error}", source="storage")
    
    @classmethod
    def from_platform(cls, error: Exception) -> "IdentityUnavailable":
        """Create exception for a device platform failure."""
        return cls(f"Device platform returned no identifier: {error}", source="platform")
