"""Pytest configuration and fixtures for mentor-session tests."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import pytest

from mentor_session.application import (
    DeviceIdentity,
    SessionContext,
    SessionManager,
    TokenCodec,
    TokenManager,
)
from mentor_session.core.events import EventStream, SessionEvent
from mentor_session.core.value_objects import AuthUser
from mentor_session.infrastructure import (
    InMemoryIdentityProvider,
    MemoryDocumentStore,
    MemoryLocalStorage,
)

TEST_SECRET = "test-secret-key"
SESSIONS = "userSessions"
USERS = "users"


class FakeClock:
    """Manually advanced UTC clock shared by codec, managers and store."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class StaticDevicePlatform:
    """Device platform reporting a fixed unique id."""

    platform = "android"
    os_version = "14"
    app_version = "2.4.0"

    def __init__(self, unique_id: str):
        self.unique_id = unique_id
        self.id_requests = 0

    async def get_unique_id(self) -> str:
        self.id_requests += 1
        return self.unique_id

    async def get_brand(self) -> Optional[str]:
        return "Google"

    async def get_model(self) -> Optional[str]:
        return "Pixel 8"


@dataclass
class Device:
    """One install: its own storage, identity provider and managers over the shared store."""

    device_id: str
    identity_provider: InMemoryIdentityProvider
    local_storage: MemoryLocalStorage
    platform: StaticDevicePlatform
    device_identity: DeviceIdentity
    session_manager: SessionManager
    token_manager: TokenManager
    context: SessionContext
    events: EventStream
    received: List[SessionEvent]

    async def close(self) -> None:
        await self.context.heartbeat.stop()


@pytest.fixture
def clock():
    """Controllable clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def store(clock):
    """Shared in-memory document store with a seeded user record."""
    document_store = MemoryDocumentStore(clock=clock)
    document_store.seed(USERS, "user-1", {"role": "mentee", "email": "mentee@example.com"})
    return document_store


@pytest.fixture
def codec(clock):
    return TokenCodec(TEST_SECRET, clock=clock)


@pytest.fixture
def user():
    return AuthUser(uid="user-1", email="mentee@example.com")


@pytest.fixture
def make_device(store, clock, user) -> Callable[..., Device]:
    """Factory building a signed-in device over the shared store."""

    def build(
        device_id: str = "device-a",
        signed_in: Optional[AuthUser] = user,
        local_storage: Optional[MemoryLocalStorage] = None,
        activity_interval: float = 3600,
        token_refresh_interval: float = 3600,
    ) -> Device:
        identity_provider = InMemoryIdentityProvider(signed_in)
        storage = local_storage if local_storage is not None else MemoryLocalStorage()
        platform = StaticDevicePlatform(device_id)
        events: EventStream = EventStream("session_events")
        received: List[SessionEvent] = []
        events.subscribe(received.append)

        device_identity = DeviceIdentity(storage, platform)
        session_manager = SessionManager(
            store,
            identity_provider,
            device_identity,
            sessions_collection=SESSIONS,
            users_collection=USERS,
            clock=clock,
        )
        token_manager = TokenManager(
            TokenCodec(TEST_SECRET, clock=clock),
            storage,
            session_manager,
            identity_provider,
            device_identity,
            events=events,
            clock=clock,
        )
        context = SessionContext(
            identity_provider,
            device_identity,
            session_manager,
            token_manager,
            events,
            activity_interval=activity_interval,
            token_refresh_interval=token_refresh_interval,
        )
        return Device(
            device_id=device_id,
            identity_provider=identity_provider,
            local_storage=storage,
            platform=platform,
            device_identity=device_identity,
            session_manager=session_manager,
            token_manager=token_manager,
            context=context,
            events=events,
            received=received,
        )

    return build
