"""Malformed token exception."""

from typing import Optional

from .base import MentorSessionError


class TokenDecodeError(MentorSessionError):
    """Raised when a token string cannot be decoded or its signature does not verify.
    
    Always fail-closed: a token that raises this is treated as expired and invalid.
    """
    
    def __init__(
        self,
        message: str = "Token could not be decoded",
        *,
        reason: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            error_code="TOKEN_DECODE_ERROR",
            details={"reason": reason},
        )
        self.reason = reason
    
    @classmethod
    def malformed(cls, segment_count: int) -> "TokenDecodeError":
        """Create exception for a token with the wrong number of segments."""
        return cls(
            f"Token must have 3 segments, got {segment_count}",
            reason="malformed",
        )
    
    @classmethod
    def bad_signature(cls, detail: str) -> "TokenDecodeError":
        """Create exception for a token that failed signature verification."""
        return cls(f"Token verification failed: {detail}", reason="signature")
