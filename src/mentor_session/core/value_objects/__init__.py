"""Session platform value objects."""

from .auth_user import AuthUser
from .device_info import DeviceInfo
from .session_key import SessionKey
from .tokens import TokenPair, StoredTokens

__all__ = [
    "AuthUser",
    "DeviceInfo",
    "SessionKey",
    "TokenPair",
    "StoredTokens",
]
