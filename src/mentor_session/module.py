"""Session module: the one place the session subsystem is wired together.

Usage:
    from mentor_session import SessionModule

    module = SessionModule.create()
    module.context.attach()
    await module.identity_provider.sign_in(AuthUser(uid="u1"))
    token = await module.context.get_valid_access_token()
    ...
    await module.close()
"""

import logging
from typing import Optional

from .application import (
    DeviceIdentity,
    SessionContext,
    SessionManager,
    TokenCodec,
    TokenManager,
)
from .config import SessionSettings, get_settings
from .core.events import EventStream, SessionEvent
from .core.protocols import DevicePlatform, DocumentStore, IdentityProvider, LocalStorage
from .infrastructure import (
    HostDevicePlatform,
    InMemoryIdentityProvider,
    JsonFileLocalStorage,
    MemoryDocumentStore,
    MemoryLocalStorage,
    RedisDocumentStore,
)

logger = logging.getLogger(__name__)


class SessionModule:
    """Application context holding one instance of every session component.

    Build it once at process start and pass it (or its ``context``) to the
    code that needs authenticated access. There are no module-level
    singletons; two modules never share state.
    """

    def __init__(
        self,
        settings: SessionSettings,
        store: DocumentStore,
        identity_provider: IdentityProvider,
        local_storage: LocalStorage,
        device_platform: DevicePlatform
    ):
        self.settings = settings
        self.store = store
        self.identity_provider = identity_provider
        self.local_storage = local_storage
        self.device_platform = device_platform

        self.events: EventStream[SessionEvent] = EventStream("session_events")

        self.codec = TokenCodec(
            settings.token_secret_key.get_secret_value(),
            algorithm=settings.token_algorithm,
        )
        self.device_identity = DeviceIdentity(
            local_storage,
            device_platform,
            storage_key=settings.device_id_key,
        )
        self.session_manager = SessionManager(
            store,
            identity_provider,
            self.device_identity,
            sessions_collection=settings.sessions_collection,
            users_collection=settings.users_collection,
            idle_timeout=settings.idle_timeout,
        )
        self.token_manager = TokenManager(
            self.codec,
            local_storage,
            self.session_manager,
            identity_provider,
            self.device_identity,
            access_ttl=settings.access_token_ttl,
            refresh_ttl=settings.refresh_token_ttl,
            access_token_key=settings.access_token_key,
            refresh_token_key=settings.refresh_token_key,
            timestamp_key=settings.token_timestamp_key,
            events=self.events,
        )
        self.context = SessionContext(
            identity_provider,
            self.device_identity,
            self.session_manager,
            self.token_manager,
            self.events,
            activity_interval=settings.activity_interval_seconds,
            token_refresh_interval=settings.token_refresh_interval_seconds,
        )

    @classmethod
    def create(
        cls,
        settings: Optional[SessionSettings] = None,
        *,
        store: Optional[DocumentStore] = None,
        identity_provider: Optional[IdentityProvider] = None,
        local_storage: Optional[LocalStorage] = None,
        device_platform: Optional[DevicePlatform] = None
    ) -> "SessionModule":
        """Build a module, filling unspecified collaborators from settings.

        Without a Redis URL the store is in-memory; without a local storage
        path the token pair and device id live only in memory.
        """
        settings = settings or get_settings()

        if store is None:
            if settings.redis_url:
                store = RedisDocumentStore.from_url(settings.redis_url, key_prefix=settings.redis_key_prefix)
            else:
                logger.warning("No SESSION_REDIS_URL configured, using in-memory document store")
                store = MemoryDocumentStore()

        if local_storage is None:
            if settings.local_storage_path:
                local_storage = JsonFileLocalStorage(settings.local_storage_path)
            else:
                local_storage = MemoryLocalStorage()

        return cls(
            settings,
            store=store,
            identity_provider=identity_provider or InMemoryIdentityProvider(),
            local_storage=local_storage,
            device_platform=device_platform or HostDevicePlatform(),
        )

    async def close(self) -> None:
        """Detach from the identity provider and stop background work."""
        self.context.detach()
        await self.context.heartbeat.stop()
        if isinstance(self.store, RedisDocumentStore):
            await self.store.aclose()
        logger.debug("Session module closed")
