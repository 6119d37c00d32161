"""In-memory identity provider."""

import logging
from typing import Optional

from ...core.events import EventStream, Subscription
from ...core.protocols import AuthStateListener
from ...core.value_objects import AuthUser

logger = logging.getLogger(__name__)


class InMemoryIdentityProvider:
    """Identity provider for tests and local runs.

    ``sign_in`` stands in for whatever credential flow the host app uses;
    listeners are notified of every transition, sign-in and sign-out alike.
    """

    def __init__(self, user: Optional[AuthUser] = None):
        self._user = user
        self._auth_state: EventStream[Optional[AuthUser]] = EventStream("auth_state")

    def current_user(self) -> Optional[AuthUser]:
        return self._user

    def on_auth_state_changed(self, listener: AuthStateListener) -> Subscription:
        return self._auth_state.subscribe(listener)

    async def sign_in(self, user: AuthUser) -> None:
        self._user = user
        logger.info(f"Signed in {user.uid}")
        await self._auth_state.publish(user)

    async def sign_out(self) -> None:
        if self._user is None:
            return
        logger.info(f"Signed out {self._user.uid}")
        self._user = None
        await self._auth_state.publish(None)
