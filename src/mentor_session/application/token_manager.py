"""Access/refresh token lifecycle with single-flight refresh."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from ..core.enums import RefreshState, TokenState, TokenType
from ..core.events import EventStream, TokensRefreshed
from ..core.exceptions import IdentityUnavailable, RefreshFailure, mask_identifier
from ..core.protocols import IdentityProvider, LocalStorage
from ..core.value_objects import AuthUser, StoredTokens, TokenPair
from .device_identity import DeviceIdentity
from .session_manager import SessionManager
from .token_codec import TTL, TokenCodec

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenManager:
    """Issues, persists and refreshes the token pair of this device.

    ``get_valid_access_token`` is the single entry point for authenticated
    calls. At most one refresh runs at a time per manager; concurrent callers
    attach to the in-flight refresh and receive its result (or its error).
    Refresh failures are never retried here: local tokens are cleared, the
    session is deactivated and ``RefreshFailure`` is raised.
    """

    def __init__(
        self,
        codec: TokenCodec,
        storage: LocalStorage,
        session_manager: SessionManager,
        identity_provider: IdentityProvider,
        device_identity: DeviceIdentity,
        *,
        access_ttl: TTL = "30m",
        refresh_ttl: TTL = "7d",
        access_token_key: str = "access_token",
        refresh_token_key: str = "refresh_token",
        timestamp_key: str = "token_timestamp",
        events: Optional[EventStream] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self._codec = codec
        self._storage = storage
        self._session_manager = session_manager
        self._identity = identity_provider
        self._device_identity = device_identity
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._access_token_key = access_token_key
        self._refresh_token_key = refresh_token_key
        self._timestamp_key = timestamp_key
        self._events = events
        self._clock = clock

        self._access_token: Optional[str] = None
        self._refresh_token: Optional[str] = None

        # Single-flight guard
        self._refresh_state = RefreshState.IDLE
        self._refresh_task: Optional[asyncio.Task] = None

    @property
    def refresh_state(self) -> RefreshState:
        return self._refresh_state

    @property
    def token_state(self) -> TokenState:
        if self._refresh_state is RefreshState.REFRESHING:
            return TokenState.REFRESHING
        if not self._access_token or not self._refresh_token:
            return TokenState.NO_TOKENS
        if self._codec.is_expired(self._access_token):
            return TokenState.TOKENS_EXPIRED
        return TokenState.TOKENS_VALID

    @property
    def has_tokens(self) -> bool:
        return bool(self._access_token and self._refresh_token)

    def issue_tokens(self, user: AuthUser, role: Optional[str]) -> TokenPair:
        """Mint an access/refresh pair bound to this device and the user's role.

        Raises:
            IdentityUnavailable: If the device id has not been resolved
        """
        device_id = self._device_identity.device_id
        if not device_id:
            raise IdentityUnavailable("Cannot issue tokens before the device id is resolved")

        access_token = self._codec.encode({
            "uid": user.uid,
            "email": user.email,
            "role": role,
            "deviceId": device_id,
        }, self.access_ttl)

        refresh_token = self._codec.encode({
            "uid": user.uid,
            "deviceId": device_id,
            "type": TokenType.REFRESH.value,
        }, self.refresh_ttl)

        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    async def persist(self, access_token: str, refresh_token: str) -> None:
        """Store the pair locally and record its fingerprints on the session.

        Local storage failures propagate; the fingerprint write is an audit
        side channel and only logs on failure.
        """
        timestamp_ms = int(self._clock().timestamp() * 1000)
        await self._storage.multi_set([
            (self._access_token_key, access_token),
            (self._refresh_token_key, refresh_token),
            (self._timestamp_key, str(timestamp_ms)),
        ])

        self._access_token = access_token
        self._refresh_token = refresh_token

        try:
            await self._session_manager.store_token_fingerprints(
                self._codec.fingerprint(access_token),
                self._codec.fingerprint(refresh_token),
            )
        except Exception as e:
            logger.warning(f"Error storing session token fingerprints: {e}")

    async def load_persisted(self) -> Optional[StoredTokens]:
        """Read the persisted pair; None unless both tokens are present."""
        try:
            values = await self._storage.multi_get([
                self._access_token_key,
                self._refresh_token_key,
                self._timestamp_key,
            ])
        except Exception as e:
            logger.error(f"Error retrieving tokens: {e}")
            return None

        access_token = values.get(self._access_token_key)
        refresh_token = values.get(self._refresh_token_key)
        if not access_token or not refresh_token:
            return None

        self._access_token = access_token
        self._refresh_token = refresh_token

        timestamp: Optional[int] = None
        raw_timestamp = values.get(self._timestamp_key)
        if raw_timestamp:
            try:
                timestamp = int(raw_timestamp)
            except ValueError:
                logger.warning(f"Ignoring malformed token timestamp {raw_timestamp!r}")

        return StoredTokens(access_token=access_token, refresh_token=refresh_token, timestamp=timestamp)

    async def establish(self, user: AuthUser) -> TokenPair:
        """Issue and persist a fresh pair for a user who just signed in.

        Raises:
            RefreshFailure: If the user record does not exist
            IdentityUnavailable: If the device id cannot be resolved
        """
        await self._device_identity.get_or_create_device_id()
        user_record = await self._session_manager.get_user_record(user.uid)
        if user_record is None:
            raise RefreshFailure.user_record_missing(user.uid)

        pair = self.issue_tokens(user, user_record.get("role"))
        await self.persist(pair.access_token, pair.refresh_token)
        return pair

    async def get_valid_access_token(self) -> str:
        """Return an unexpired access token, refreshing it if needed.

        Raises:
            RefreshFailure: If no valid token can be produced; the caller must sign out
        """
        if self._refresh_state is RefreshState.REFRESHING and self._refresh_task is not None:
            return await asyncio.shield(self._refresh_task)

        if self._access_token and not self._codec.is_expired(self._access_token):
            return self._access_token

        return await self.refresh_access_token()

    async def refresh_access_token(self) -> str:
        """Mint a new pair from the refresh token, joining any refresh already in flight."""
        if self._refresh_task is None:
            task = asyncio.get_running_loop().create_task(self._perform_token_refresh())
            task.add_done_callback(self._on_refresh_done)
            self._refresh_task = task
            self._refresh_state = RefreshState.REFRESHING

        # Shielded so a cancelled caller does not cancel the shared refresh
        return await asyncio.shield(self._refresh_task)

    def _on_refresh_done(self, task: asyncio.Task) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
            self._refresh_state = RefreshState.IDLE
        # Mark the outcome retrieved even if every waiter was cancelled
        if not task.cancelled():
            task.exception()

    async def _perform_token_refresh(self) -> str:
        user_id: Optional[str] = None
        try:
            refresh_token = self._refresh_token
            if not refresh_token:
                raise RefreshFailure.missing_refresh_token()

            claims = self._codec.decode(refresh_token)
            if (
                not claims
                or claims.get("type") != TokenType.REFRESH.value
                or self._codec.is_expired(refresh_token)
            ):
                raise RefreshFailure.refresh_token_expired()

            user = self._identity.current_user()
            if user is None:
                raise RefreshFailure.not_authenticated()
            user_id = user.uid

            if claims.get("uid") != user.uid:
                raise RefreshFailure(
                    "Refresh token was issued to another user",
                    reason="user_mismatch",
                    user_id=user.uid,
                )
            if claims.get("deviceId") != self._device_identity.device_id:
                raise RefreshFailure(
                    "Refresh token was issued to another device",
                    reason="device_mismatch",
                    user_id=user.uid,
                )

            if not await self._session_manager.validate():
                raise RefreshFailure.session_not_live(user.uid)

            # Role may have changed since the last issuance
            user_record = await self._session_manager.get_user_record(user.uid)
            if user_record is None:
                raise RefreshFailure.user_record_missing(user.uid)

            pair = self.issue_tokens(user, user_record.get("role"))
            await self.persist(pair.access_token, pair.refresh_token)
            await self._session_manager.touch_activity()

        except Exception as e:
            logger.error(f"Error refreshing token: {e}")
            await self.clear_tokens()
            if isinstance(e, RefreshFailure):
                raise
            raise RefreshFailure(
                "Token refresh process failed",
                reason="refresh_error",
                user_id=user_id,
                context={"error": str(e)},
            ) from e

        logger.info(f"Refreshed tokens for user {user_id} ({mask_identifier(pair.access_token)})")
        if self._events is not None:
            await self._events.publish(TokensRefreshed(
                user_id=user_id,
                device_id=self._device_identity.device_id,
                access_expires_at=self._codec.expires_at(pair.access_token),
            ))
        return pair.access_token

    async def clear_tokens(self) -> None:
        """Forget the pair locally and deactivate this device's session. Never raises."""
        self._access_token = None
        self._refresh_token = None

        try:
            await self._storage.multi_remove([
                self._access_token_key,
                self._refresh_token_key,
                self._timestamp_key,
            ])
        except Exception as e:
            logger.error(f"Error clearing tokens: {e}")

        await self._session_manager.deactivate()
