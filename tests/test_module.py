"""Tests for session module wiring."""

import pytest

from mentor_session import SessionModule, SessionSettings
from mentor_session.core.value_objects import AuthUser
from mentor_session.infrastructure import (
    InMemoryIdentityProvider,
    JsonFileLocalStorage,
    MemoryDocumentStore,
    MemoryLocalStorage,
)


@pytest.fixture
def settings():
    return SessionSettings(_env_file=None, token_secret_key="module-test-secret")


class TestSessionModule:
    """Test building the application context."""

    def test_create_defaults_to_memory_collaborators(self, settings):
        module = SessionModule.create(settings)

        assert isinstance(module.store, MemoryDocumentStore)
        assert isinstance(module.local_storage, MemoryLocalStorage)
        assert isinstance(module.identity_provider, InMemoryIdentityProvider)
        assert module.context.heartbeat.activity_interval == 300
        assert module.context.heartbeat.token_refresh_interval == 1500

    def test_local_storage_path_selects_file_storage(self, tmp_path):
        settings = SessionSettings(
            _env_file=None,
            token_secret_key="module-test-secret",
            local_storage_path=str(tmp_path / "storage.json"),
        )

        module = SessionModule.create(settings)

        assert isinstance(module.local_storage, JsonFileLocalStorage)

    def test_modules_do_not_share_state(self, settings):
        first = SessionModule.create(settings)
        second = SessionModule.create(settings)

        assert first.store is not second.store
        assert first.events is not second.events

    @pytest.mark.asyncio
    async def test_sign_in_flow(self, settings):
        store = MemoryDocumentStore()
        store.seed("users", "user-1", {"role": "mentor"})
        module = SessionModule.create(settings, store=store)
        module.context.attach()

        await module.identity_provider.sign_in(AuthUser(uid="user-1", email="mentor@example.com"))

        assert module.context.session_valid is True
        token = await module.context.get_valid_access_token()
        assert module.codec.decode(token)["role"] == "mentor"

        sessions = await module.context.get_user_sessions()
        assert len(sessions) == 1
        assert sessions[0].device_id == module.context.device_id

        await module.close()
        assert module.context.heartbeat.running is False
