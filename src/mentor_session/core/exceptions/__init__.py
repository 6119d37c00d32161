"""Session platform exceptions.

Each exception represents exactly one failure scenario of the
session/token lifecycle.
"""

from .base import MentorSessionError, create_error_response, mask_identifier
from .identity_unavailable import IdentityUnavailable
from .token_decode_error import TokenDecodeError
from .refresh_failure import RefreshFailure
from .session_invalid import SessionInvalid
from .store_errors import TransientStoreError, DocumentNotFound

__all__ = [
    "MentorSessionError",
    "create_error_response",
    "mask_identifier",
    "IdentityUnavailable",
    "TokenDecodeError",
    "RefreshFailure",
    "SessionInvalid",
    "TransientStoreError",
    "DocumentNotFound",
]
