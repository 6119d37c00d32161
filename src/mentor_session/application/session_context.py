"""UI-facing facade over the session/token lifecycle."""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from ..core.entities import SessionRecord
from ..core.enums import AppState
from ..core.events import (
    EventStream,
    SessionEstablished,
    SessionExpired,
    Subscription,
    UserLoggedOut,
)
from ..core.exceptions import (
    IdentityUnavailable,
    MentorSessionError,
    RefreshFailure,
    TransientStoreError,
)
from ..core.protocols import IdentityProvider
from ..core.value_objects import AuthUser
from .activity_heartbeat import ActivityHeartbeat
from .device_identity import DeviceIdentity
from .session_manager import SessionManager
from .token_manager import TokenManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionStatus:
    """Outcome of ``initialize_session``."""

    valid: bool
    session: Optional[SessionRecord] = None


INVALID = SessionStatus(valid=False, session=None)


class SessionContext:
    """What screens see of the session subsystem.

    The user is either fully authenticated or in the "session expired"
    state; there is no degraded mode. Every transition into the expired
    state publishes ``SessionExpired`` on ``events``.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        device_identity: DeviceIdentity,
        session_manager: SessionManager,
        token_manager: TokenManager,
        events: EventStream,
        *,
        activity_interval: float = 300,
        token_refresh_interval: float = 1500
    ):
        self._identity = identity_provider
        self._device_identity = device_identity
        self._session_manager = session_manager
        self._token_manager = token_manager
        self.events = events
        self.heartbeat = ActivityHeartbeat(
            session_manager,
            token_manager,
            on_session_invalid=self._expire_session,
            activity_interval=activity_interval,
            token_refresh_interval=token_refresh_interval,
        )

        self._session_valid = False
        self._init_lock = asyncio.Lock()
        self._auth_subscription: Optional[Subscription] = None

    @property
    def session_valid(self) -> bool:
        return self._session_valid

    @property
    def current_session(self) -> Optional[SessionRecord]:
        return self._session_manager.current_session

    @property
    def device_id(self) -> Optional[str]:
        return self._device_identity.device_id

    # ── Auth state wiring ───────────────────────────────────────────

    def attach(self) -> None:
        """Follow the identity provider: sign-in initializes, sign-out drops local state."""
        if self._auth_subscription is None:
            self._auth_subscription = self._identity.on_auth_state_changed(
                self._handle_auth_state_changed
            )

    def detach(self) -> None:
        if self._auth_subscription is not None:
            self._auth_subscription.unsubscribe()
            self._auth_subscription = None

    async def _handle_auth_state_changed(self, user: Optional[AuthUser]) -> None:
        if user is not None:
            await self.initialize_session()
        elif self._session_valid or self._token_manager.has_tokens:
            await self._token_manager.clear_tokens()
            await self._drop_local_state()

    # ── Initialization ──────────────────────────────────────────────

    async def initialize_session(self) -> SessionStatus:
        """Bring this device's session up for the signed-in user.

        Persisted tokens mean a returning session: it must still validate and
        its tokens must refresh, otherwise the user is signed out. No
        persisted tokens means a fresh sign-in: a new pair is issued and the
        session record created or reactivated.
        """
        async with self._init_lock:
            try:
                await self._device_identity.get_or_create_device_id()
            except IdentityUnavailable as e:
                logger.error(f"Session init aborted: {e}")
                self._session_valid = False
                return INVALID

            user = self._identity.current_user()
            if user is None:
                return INVALID

            stored = await self._token_manager.load_persisted()
            if stored is not None:
                status = await self._resume_session()
            else:
                status = await self._start_session(user)

            if status.valid:
                self._session_valid = True
                self.heartbeat.start()
                await self.events.publish(SessionEstablished(
                    user_id=user.uid,
                    device_id=self.device_id,
                    created=stored is None,
                ))
            return status

    async def _resume_session(self) -> SessionStatus:
        try:
            valid = await self._session_manager.validate()
        except TransientStoreError as e:
            logger.warning(f"Could not validate stored session: {e}")
            return INVALID

        if not valid:
            await self._expire_session()
            return INVALID

        try:
            await self._token_manager.get_valid_access_token()
        except RefreshFailure:
            await self._expire_session(reason="refresh_failed")
            return INVALID

        await self._session_manager.touch_activity()
        session = await self._session_manager.refresh_snapshot()
        return SessionStatus(valid=session is not None, session=session)

    async def _start_session(self, user: AuthUser) -> SessionStatus:
        try:
            await self._token_manager.establish(user)
            session = await self._session_manager.create_or_update()
        except MentorSessionError as e:
            logger.error(f"Error establishing session for {user.uid}: {e}")
            await self._token_manager.clear_tokens()
            return INVALID
        return SessionStatus(valid=session is not None, session=session)

    # ── Authenticated operations ────────────────────────────────────

    async def get_valid_access_token(self) -> str:
        """Token for an authenticated call.

        Raises:
            RefreshFailure: After the user has been signed out
        """
        try:
            return await self._token_manager.get_valid_access_token()
        except RefreshFailure:
            await self._expire_session(reason="refresh_failed")
            raise

    async def get_user_sessions(self) -> List[SessionRecord]:
        if self._identity.current_user() is None:
            return []
        return await self._session_manager.list_sessions()

    async def get_active_sessions(self) -> List[SessionRecord]:
        if self._identity.current_user() is None:
            return []
        return await self._session_manager.list_active_sessions()

    async def logout_device(self, device_id: str) -> None:
        await self._session_manager.logout_device(device_id)

    async def logout_all_devices(self) -> int:
        """Deactivate every session of the user, then sign out locally."""
        user = self._identity.current_user()
        if user is None:
            return 0

        count = await self._session_manager.logout_all_devices(user.uid)
        await self._token_manager.clear_tokens()
        await self._identity.sign_out()
        await self._drop_local_state()
        await self.events.publish(UserLoggedOut(
            user_id=user.uid, device_id=self.device_id, all_devices=True
        ))
        return count

    async def sign_out(self) -> None:
        user = self._identity.current_user()
        if user is None:
            return

        await self._session_manager.deactivate()
        await self._token_manager.clear_tokens()
        await self._identity.sign_out()
        await self._drop_local_state()
        await self.events.publish(UserLoggedOut(user_id=user.uid, device_id=self.device_id))

    async def refresh_session(self) -> bool:
        """Manual re-validation; an invalid session signs the user out.

        Raises:
            TransientStoreError: If the store cannot be reached
        """
        if self._identity.current_user() is None:
            return False
        return await self.heartbeat.revalidate()

    async def on_app_state_change(self, next_state: Union[AppState, str]) -> Optional[bool]:
        """Forward a lifecycle transition; only a live signed-in session is re-validated."""
        live = self._session_valid and self._identity.current_user() is not None
        return await self.heartbeat.on_app_state_change(next_state, validate=live)

    # ── Forced sign-out ─────────────────────────────────────────────

    async def _expire_session(self, reason: str = "invalid") -> None:
        user = self._identity.current_user()
        await self._token_manager.clear_tokens()
        try:
            await self._identity.sign_out()
        except Exception as e:
            logger.error(f"Identity provider sign-out failed: {e}")
        await self._drop_local_state()

        logger.info(f"Session expired ({reason})")
        await self.events.publish(SessionExpired(
            user_id=user.uid if user else None,
            device_id=self.device_id,
            reason=reason,
        ))

    async def _drop_local_state(self) -> None:
        self._session_valid = False
        self._session_manager.clear_snapshot()
        await self.heartbeat.stop()
