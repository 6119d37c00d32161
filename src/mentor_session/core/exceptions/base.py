"""Base exceptions for mentor-session.

This module defines the base exception hierarchy for the mentor-session library.
All exceptions inherit from MentorSessionError and carry an error code and
structured details for logging and for the UI layer's error state.
"""

from typing import Any, Dict, Optional


class MentorSessionError(Exception):
    """Base exception for all mentor-session errors.
    
    All exceptions in the mentor-session library inherit from this base class
    and include structured error information for better debugging.
    """
    
    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


def mask_identifier(value: Optional[str], keep: int = 6) -> Optional[str]:
    """Mask an identifier or token for safe inclusion in logs."""
    if value is None:
        return None
    if len(value) <= keep * 2:
        return "***"
    return f"{value[:keep]}...{value[-keep:]}"


def create_error_response(exception: MentorSessionError) -> Dict[str, Any]:
    """Create standardized error response from exception.
    
    Args:
        exception: The mentor-session exception
        
    Returns:
        Error response dictionary
    """
    return {
        "error": {
            "code": exception.error_code,
            "message": exception.message,
            "details": exception.details,
            "type": exception.__class__.__name__,
        }
    }
