"""Session lifecycle events and the subscription stream that delivers them."""

from .session_events import (
    SessionEvent,
    SessionEstablished,
    SessionExpired,
    TokensRefreshed,
    UserLoggedOut,
)
from .stream import EventStream, Subscription

__all__ = [
    "SessionEvent",
    "SessionEstablished",
    "SessionExpired",
    "TokensRefreshed",
    "UserLoggedOut",
    "EventStream",
    "Subscription",
]
