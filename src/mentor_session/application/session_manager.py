"""Session record lifecycle for the current (user, device) pair."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from ..core.entities import SessionRecord
from ..core.exceptions import MentorSessionError, SessionInvalid, TransientStoreError
from ..core.protocols import SERVER_TIMESTAMP, DocumentStore, FieldFilter, IdentityProvider
from ..core.value_objects import SessionKey
from .device_identity import DeviceIdentity

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionManager:
    """Owns create/update/validate/deactivate/list/revoke of session records.

    One record per (user, device), keyed ``userId_deviceId``. Deactivation is a
    soft delete (``isActive = False``); records are never removed.

    Failure policy:
    - validation and explicit logout propagate store errors
    - activity touches, deactivation and audit writes log and swallow them
    """

    def __init__(
        self,
        store: DocumentStore,
        identity_provider: IdentityProvider,
        device_identity: DeviceIdentity,
        *,
        sessions_collection: str = "userSessions",
        users_collection: str = "users",
        idle_timeout: timedelta = timedelta(days=30),
        clock: Callable[[], datetime] = utcnow
    ):
        """Initialize session manager.

        Args:
            store: Remote document store holding the session records
            identity_provider: Source of the signed-in user
            device_identity: Resolver of this install's device id
            sessions_collection: Collection holding session records
            users_collection: Collection holding user records (role lookup)
            idle_timeout: Inactivity after which a session is no longer live
            clock: Source of the current UTC time for idle checks
        """
        self._store = store
        self._identity = identity_provider
        self._device_identity = device_identity
        self.sessions_collection = sessions_collection
        self.users_collection = users_collection
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._current_session: Optional[SessionRecord] = None

    @property
    def current_session(self) -> Optional[SessionRecord]:
        """In-memory snapshot of this device's record."""
        return self._current_session

    def clear_snapshot(self) -> None:
        self._current_session = None

    def _current_key(self) -> Optional[SessionKey]:
        """Key of this device's record, or None without a user or a resolved device id."""
        user = self._identity.current_user()
        device_id = self._device_identity.device_id
        if user is None or not device_id:
            return None
        return SessionKey(user.uid, device_id)

    async def get_session(self, key: SessionKey) -> Optional[SessionRecord]:
        snapshot = await self._store.get(self.sessions_collection, key.doc_id)
        if snapshot is None:
            return None
        return SessionRecord.from_document(snapshot.id, snapshot.data)

    async def get_user_record(self, uid: str) -> Optional[Dict[str, Any]]:
        """Read the user document (holds the current role)."""
        snapshot = await self._store.get(self.users_collection, uid)
        return snapshot.data if snapshot else None

    async def create_or_update(self) -> Optional[SessionRecord]:
        """Upsert this device's record and return it.

        Existing records get a fresh ``lastActivity``, ``isActive = True`` and
        a new deviceInfo snapshot; ``createdAt`` is only written on creation.

        Returns:
            The record as stored, or None when no user is signed in

        Raises:
            IdentityUnavailable: If the device id cannot be resolved
        """
        user = self._identity.current_user()
        if user is None:
            return None

        device_info = await self._device_identity.describe_device()
        key = SessionKey(user.uid, device_info.device_id)

        existing = await self._store.get(self.sessions_collection, key.doc_id)
        if existing is not None:
            await self._store.update(self.sessions_collection, key.doc_id, {
                "lastActivity": SERVER_TIMESTAMP,
                "isActive": True,
                "deviceInfo": device_info.to_document(),
            })
            logger.info(f"Refreshed session {key}")
        else:
            await self._store.set(self.sessions_collection, key.doc_id, {
                "userId": user.uid,
                "deviceInfo": device_info.to_document(),
                "createdAt": SERVER_TIMESTAMP,
                "lastActivity": SERVER_TIMESTAMP,
                "isActive": True,
            })
            logger.info(f"Created session {key}")

        self._current_session = await self.get_session(key)
        return self._current_session

    async def refresh_snapshot(self) -> Optional[SessionRecord]:
        """Re-read this device's record into the in-memory snapshot."""
        key = self._current_key()
        if key is None:
            self._current_session = None
            return None
        self._current_session = await self.get_session(key)
        return self._current_session

    async def touch_activity(self) -> None:
        """Bump ``lastActivity``. Best-effort: no-op without user/device, errors are logged."""
        key = self._current_key()
        if key is None:
            return

        try:
            await self._store.update(self.sessions_collection, key.doc_id, {
                "lastActivity": SERVER_TIMESTAMP,
            })
        except Exception as e:
            logger.warning(f"Error updating session activity for {key}: {e}")

    async def ensure_valid(self) -> SessionRecord:
        """Return this device's record if it is live.

        An idle-expired record is deactivated before raising.

        Raises:
            SessionInvalid: Missing, inactive or idle-expired session
            TransientStoreError: If the store cannot be read
        """
        key = self._current_key()
        if key is None:
            raise SessionInvalid("No signed-in user or device id", reason="not_authenticated")

        try:
            record = await self.get_session(key)
        except MentorSessionError:
            raise
        except Exception as e:
            raise TransientStoreError.wrap(e, "get", self.sessions_collection, key.doc_id) from e

        if record is None:
            raise SessionInvalid.not_found(key.doc_id, user_id=key.user_id)

        if not record.is_active:
            raise SessionInvalid.revoked(key.doc_id, user_id=key.user_id)

        if record.is_idle_expired(self.idle_timeout, self._clock()):
            await self.deactivate()
            raise SessionInvalid.idle_expired(
                key.doc_id,
                last_activity=record.last_activity,
                timeout_days=self.idle_timeout.days,
                user_id=key.user_id,
            )

        return record

    async def validate(self) -> bool:
        """Check that this device's session is live.

        Returns False for a missing, inactive or idle-expired record (the
        latter is deactivated as a side effect).

        Raises:
            TransientStoreError: If the store cannot be read
        """
        try:
            await self.ensure_valid()
        except SessionInvalid as e:
            logger.info(f"Session validation failed: {e}")
            return False
        return True

    async def deactivate(self) -> None:
        """Soft-delete this device's record. Idempotent and best-effort."""
        key = self._current_key()
        if key is None:
            return

        try:
            await self._deactivate(key)
        except Exception as e:
            logger.error(f"Error deactivating session {key}: {e}")
        finally:
            self._current_session = None

    async def _deactivate(self, key: SessionKey) -> bool:
        """Deactivate one record; False if it was already inactive."""
        record = await self.get_session(key)
        if record is None:
            raise SessionInvalid.not_found(key.doc_id, user_id=key.user_id)
        if not record.is_active:
            return False

        await self._store.update(self.sessions_collection, key.doc_id, {
            "isActive": False,
            "deactivatedAt": SERVER_TIMESTAMP,
        })
        logger.info(f"Deactivated session {key}")
        return True

    async def store_token_fingerprints(self, access_hash: str, refresh_hash: str) -> None:
        """Record the hashes of a newly issued token pair on this device's record.

        Audit only: an existing record gets just ``tokenHashes``, so a record
        revoked since the last validation stays revoked. A missing record is
        created inactive; ``create_or_update`` is what activates a session.
        """
        key = self._current_key()
        if key is None:
            return

        token_hashes = {"access": access_hash, "refresh": refresh_hash}
        existing = await self._store.get(self.sessions_collection, key.doc_id)
        if existing is not None:
            await self._store.update(self.sessions_collection, key.doc_id, {
                "tokenHashes": token_hashes,
            })
            return

        device_info = await self._device_identity.describe_device()
        await self._store.set(self.sessions_collection, key.doc_id, {
            "userId": key.user_id,
            "deviceInfo": device_info.to_document(),
            "tokenHashes": token_hashes,
            "createdAt": SERVER_TIMESTAMP,
            "lastActivity": SERVER_TIMESTAMP,
            "isActive": False,
        })

    async def _query_sessions(self, user_id: Optional[str], active_only: bool) -> List[SessionRecord]:
        if user_id is None:
            user = self._identity.current_user()
            if user is None:
                return []
            user_id = user.uid

        filters = [FieldFilter("userId", "==", user_id)]
        if active_only:
            filters.append(FieldFilter("isActive", "==", True))

        snapshots = await self._store.query(
            self.sessions_collection,
            filters,
            order_by="lastActivity",
            descending=True,
        )
        return [SessionRecord.from_document(s.id, s.data) for s in snapshots]

    async def list_sessions(self, user_id: Optional[str] = None) -> List[SessionRecord]:
        """Every session record of the user, most recently active first."""
        return await self._query_sessions(user_id, active_only=False)

    async def list_active_sessions(self, user_id: Optional[str] = None) -> List[SessionRecord]:
        """Active session records of the user, most recently active first."""
        return await self._query_sessions(user_id, active_only=True)

    async def logout_device(self, target_device_id: str) -> None:
        """Deactivate the current user's session on another (or this) device.

        Raises:
            SessionInvalid: If the user has no session on that device
        """
        user = self._identity.current_user()
        if user is None:
            return

        key = SessionKey(user.uid, target_device_id)
        await self._deactivate(key)

        if target_device_id == self._device_identity.device_id:
            self._current_session = None

    async def logout_all_devices(self, user_id: Optional[str] = None) -> int:
        """Deactivate every active record of the user in one atomic batch.

        Does not sign anyone out of the identity provider.

        Returns:
            Number of sessions deactivated
        """
        if user_id is None:
            user = self._identity.current_user()
            if user is None:
                return 0
            user_id = user.uid

        active = await self._store.query(
            self.sessions_collection,
            [FieldFilter("userId", "==", user_id), FieldFilter("isActive", "==", True)],
        )
        if not active:
            return 0

        batch = self._store.batch()
        for snapshot in active:
            batch.update(self.sessions_collection, snapshot.id, {
                "isActive": False,
                "deactivatedAt": SERVER_TIMESTAMP,
            })
        await batch.commit()

        current = self._current_key()
        if current is not None and current.user_id == user_id:
            self._current_session = None

        logger.info(f"Deactivated {len(active)} sessions for user {user_id}")
        return len(active)
