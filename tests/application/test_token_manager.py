"""Tests for the token manager."""

import asyncio

import pytest
from unittest.mock import AsyncMock

from mentor_session.core.enums import RefreshState, TokenState
from mentor_session.core.events import TokensRefreshed
from mentor_session.core.exceptions import RefreshFailure, TransientStoreError
from mentor_session.core.value_objects import AuthUser
from mentor_session.infrastructure import MemoryLocalStorage

TOKEN_KEYS = ("access_token", "refresh_token", "token_timestamp")


async def signed_in(device, user):
    """Issue a pair and register the session, as a fresh sign-in does."""
    pair = await device.token_manager.establish(user)
    await device.session_manager.create_or_update()
    return pair


class TestIssueAndPersist:
    """Test issuing and storing the token pair."""

    @pytest.mark.asyncio
    async def test_establish_persists_pair(self, make_device, user, clock, codec):
        device = make_device("device-a")

        pair = await device.token_manager.establish(user)

        stored = device.local_storage.snapshot()
        assert stored["access_token"] == pair.access_token
        assert stored["refresh_token"] == pair.refresh_token
        assert stored["token_timestamp"] == str(int(clock.now.timestamp() * 1000))
        assert device.token_manager.token_state is TokenState.TOKENS_VALID

        access = codec.decode(pair.access_token)
        refresh = codec.decode(pair.refresh_token)
        assert access["uid"] == "user-1"
        assert access["role"] == "mentee"
        assert access["deviceId"] == "device-a"
        assert access["exp"] - access["iat"] == 30 * 60
        assert refresh["type"] == "refresh"
        assert refresh["exp"] - refresh["iat"] == 7 * 86400
        assert "role" not in refresh

    @pytest.mark.asyncio
    async def test_remote_store_only_sees_hashes(self, make_device, user, store, codec):
        device = make_device("device-a")

        pair = await device.token_manager.establish(user)

        record = store.dump("userSessions")["user-1_device-a"]
        assert record["tokenHashes"] == {
            "access": codec.fingerprint(pair.access_token),
            "refresh": codec.fingerprint(pair.refresh_token),
        }
        assert pair.access_token not in str(record)

    @pytest.mark.asyncio
    async def test_establish_requires_user_record(self, make_device):
        stranger = AuthUser(uid="user-9")
        device = make_device("device-a", signed_in=stranger)

        with pytest.raises(RefreshFailure) as exc_info:
            await device.token_manager.establish(stranger)

        assert exc_info.value.reason == "user_record_missing"
        assert device.local_storage.snapshot() == {"device_id": "device-a"}

    @pytest.mark.asyncio
    async def test_fingerprint_failure_does_not_block_persist(self, make_device, user):
        device = make_device("device-a")
        device.session_manager.store_token_fingerprints = AsyncMock(
            side_effect=TransientStoreError("offline")
        )

        pair = await device.token_manager.establish(user)

        assert device.local_storage.snapshot()["access_token"] == pair.access_token

    @pytest.mark.asyncio
    async def test_partial_pair_is_not_loaded(self, make_device):
        storage = MemoryLocalStorage({"access_token": "a.b.c"})
        device = make_device("device-a", local_storage=storage)

        assert await device.token_manager.load_persisted() is None
        assert device.token_manager.token_state is TokenState.NO_TOKENS

    @pytest.mark.asyncio
    async def test_load_persisted_after_restart(self, make_device, user):
        device = make_device("device-a")
        pair = await signed_in(device, user)

        restarted = make_device("device-a", local_storage=device.local_storage)
        stored = await restarted.token_manager.load_persisted()

        assert stored.access_token == pair.access_token
        assert stored.refresh_token == pair.refresh_token
        assert stored.timestamp is not None
        assert restarted.token_manager.has_tokens


class TestGetValidAccessToken:
    """Test expiry-aware retrieval and refresh."""

    @pytest.mark.asyncio
    async def test_returns_cached_token_without_remote_calls(self, make_device, user, store):
        device = make_device("device-a")
        pair = await signed_in(device, user)
        calls = len(store.operations)

        assert await device.token_manager.get_valid_access_token() == pair.access_token
        assert len(store.operations) == calls

    @pytest.mark.asyncio
    async def test_expired_access_token_is_refreshed(self, make_device, user, clock, codec):
        device = make_device("device-a")
        pair = await signed_in(device, user)

        clock.advance(minutes=31)
        assert device.token_manager.token_state is TokenState.TOKENS_EXPIRED
        token = await device.token_manager.get_valid_access_token()

        assert token != pair.access_token
        assert codec.is_expired(token) is False
        assert device.local_storage.snapshot()["access_token"] == token
        assert device.token_manager.refresh_state is RefreshState.IDLE
        assert device.token_manager.token_state is TokenState.TOKENS_VALID

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self, make_device, user, clock):
        """N concurrent callers with an expired token trigger exactly one refresh."""
        device = make_device("device-a")
        await signed_in(device, user)
        touch = AsyncMock(wraps=device.session_manager.touch_activity)
        device.session_manager.touch_activity = touch

        clock.advance(minutes=31)
        tokens = await asyncio.gather(*[
            device.token_manager.get_valid_access_token() for _ in range(5)
        ])

        assert len(set(tokens)) == 1
        assert touch.await_count == 1
        refreshed = [e for e in device.received if isinstance(e, TokensRefreshed)]
        assert len(refreshed) == 1

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_shared_refresh(self, make_device, user, clock):
        device = make_device("device-a")
        await signed_in(device, user)
        clock.advance(minutes=31)

        first = asyncio.ensure_future(device.token_manager.get_valid_access_token())
        second = asyncio.ensure_future(device.token_manager.get_valid_access_token())
        await asyncio.sleep(0)
        assert device.token_manager.refresh_state is RefreshState.REFRESHING

        first.cancel()
        token = await second

        with pytest.raises(asyncio.CancelledError):
            await first
        assert device.local_storage.snapshot()["access_token"] == token

    @pytest.mark.asyncio
    async def test_role_is_reread_on_refresh(self, make_device, user, store, clock, codec):
        device = make_device("device-a")
        await signed_in(device, user)
        await store.update("users", "user-1", {"role": "mentor"})

        clock.advance(minutes=31)
        token = await device.token_manager.get_valid_access_token()

        assert codec.decode(token)["role"] == "mentor"

    @pytest.mark.asyncio
    async def test_stale_refresh_token_clears_everything(self, make_device, user, store, clock):
        """An expired refresh token fails refresh, clears local tokens and deactivates the session."""
        device = make_device("device-a")
        await signed_in(device, user)

        clock.advance(days=8)
        with pytest.raises(RefreshFailure) as exc_info:
            await device.token_manager.get_valid_access_token()

        assert exc_info.value.reason == "refresh_token_expired"
        assert not any(key in device.local_storage.snapshot() for key in TOKEN_KEYS)
        assert store.dump("userSessions")["user-1_device-a"]["isActive"] is False
        assert device.token_manager.token_state is TokenState.NO_TOKENS
        assert device.token_manager.refresh_state is RefreshState.IDLE

    @pytest.mark.asyncio
    async def test_revoked_session_blocks_refresh(self, make_device, user, store, clock):
        device = make_device("device-a")
        await signed_in(device, user)
        await store.update("userSessions", "user-1_device-a", {"isActive": False})

        clock.advance(minutes=31)
        with pytest.raises(RefreshFailure) as exc_info:
            await device.token_manager.get_valid_access_token()

        assert exc_info.value.is_session_revoked

    @pytest.mark.asyncio
    async def test_logout_during_refresh_is_not_undone(self, make_device, user, store, clock):
        """A revocation landing after validation stays in force once the new pair is stored."""
        device_a = make_device("device-a")
        device_b = make_device("device-b")
        await signed_in(device_a, user)
        await signed_in(device_b, user)

        read_user_record = device_a.session_manager.get_user_record

        async def revoke_then_read(uid):
            await device_b.session_manager.logout_all_devices("user-1")
            return await read_user_record(uid)

        device_a.session_manager.get_user_record = revoke_then_read

        clock.advance(minutes=31)
        await device_a.token_manager.get_valid_access_token()

        assert store.dump("userSessions")["user-1_device-a"]["isActive"] is False
        assert await device_a.session_manager.validate() is False

    @pytest.mark.asyncio
    async def test_missing_refresh_token(self, make_device):
        device = make_device("device-a")
        await device.device_identity.get_or_create_device_id()

        with pytest.raises(RefreshFailure) as exc_info:
            await device.token_manager.get_valid_access_token()

        assert exc_info.value.reason == "missing_refresh_token"

    @pytest.mark.asyncio
    async def test_refresh_token_from_other_device_is_rejected(self, make_device, user, clock):
        device_a = make_device("device-a")
        await signed_in(device_a, user)

        copied = MemoryLocalStorage({
            key: value for key, value in device_a.local_storage.snapshot().items()
            if key in TOKEN_KEYS
        })
        device_b = make_device("device-b", local_storage=copied)
        await device_b.device_identity.get_or_create_device_id()
        await device_b.session_manager.create_or_update()
        await device_b.token_manager.load_persisted()

        clock.advance(minutes=31)
        with pytest.raises(RefreshFailure) as exc_info:
            await device_b.token_manager.get_valid_access_token()

        assert exc_info.value.reason == "device_mismatch"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_wrapped(self, make_device, user, clock):
        device = make_device("device-a")
        await signed_in(device, user)
        device.session_manager.get_user_record = AsyncMock(side_effect=RuntimeError("boom"))

        clock.advance(minutes=31)
        with pytest.raises(RefreshFailure) as exc_info:
            await device.token_manager.get_valid_access_token()

        assert exc_info.value.reason == "refresh_error"
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert not device.token_manager.has_tokens


class TestClearTokens:

    @pytest.mark.asyncio
    async def test_clear_tokens_never_raises(self, make_device, user, store):
        device = make_device("device-a")
        await signed_in(device, user)
        device.local_storage.multi_remove = AsyncMock(side_effect=OSError("read-only"))

        await device.token_manager.clear_tokens()

        assert device.token_manager.token_state is TokenState.NO_TOKENS
        assert store.dump("userSessions")["user-1_device-a"]["isActive"] is False
