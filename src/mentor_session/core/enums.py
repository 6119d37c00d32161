"""Enumerations for the session/token lifecycle."""

from enum import Enum


class TokenType(str, Enum):
    """Kinds of token minted by the token codec."""
    ACCESS = "access"
    REFRESH = "refresh"


class TokenState(str, Enum):
    """Token lifecycle as observed by the token manager."""
    NO_TOKENS = "no_tokens"
    TOKENS_VALID = "tokens_valid"
    TOKENS_EXPIRED = "tokens_expired"
    REFRESHING = "refreshing"


class RefreshState(str, Enum):
    """Single-flight refresh guard."""
    IDLE = "idle"
    REFRESHING = "refreshing"


class AppState(str, Enum):
    """Application lifecycle states reported by the host platform."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    BACKGROUND = "background"
    
    @property
    def is_foreground(self) -> bool:
        return self is AppState.ACTIVE
