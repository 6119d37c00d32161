"""Authenticated user value object."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AuthUser:
    """User as reported by the identity provider.
    
    The identity provider owns credentials; this is all the session
    subsystem ever sees of the account.
    """
    
    uid: str
    email: Optional[str] = None
    
    def __post_init__(self) -> None:
        if not self.uid:
            raise ValueError("User uid cannot be empty")
