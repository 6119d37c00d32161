"""Token value objects."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TokenPair:
    """An access token and the refresh token issued with it."""
    
    access_token: str
    refresh_token: str
    
    def __repr__(self) -> str:
        # Never render raw tokens
        return "TokenPair(access_token=***, refresh_token=***)"


@dataclass(frozen=True)
class StoredTokens:
    """Token pair as read back from local storage."""
    
    access_token: str
    refresh_token: str
    timestamp: Optional[int] = None  # milliseconds since epoch
    
    def __repr__(self) -> str:
        return f"StoredTokens(access_token=***, refresh_token=***, timestamp={self.timestamp})"
