"""Tests for device identity resolution."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from mentor_session.application import DeviceIdentity
from mentor_session.core.exceptions import IdentityUnavailable
from mentor_session.infrastructure import HostDevicePlatform, MemoryLocalStorage


@pytest.fixture
def platform():
    mock_platform = MagicMock()
    mock_platform.get_unique_id = AsyncMock(return_value="install-123")
    mock_platform.platform = "ios"
    mock_platform.os_version = "17.4"
    mock_platform.app_version = "2.4.0"
    mock_platform.get_brand = AsyncMock(return_value="Apple")
    mock_platform.get_model = AsyncMock(return_value="iPhone 15")
    return mock_platform


class TestDeviceIdentity:
    """Test generate-once, persist-forever device ids."""

    @pytest.mark.asyncio
    async def test_generates_and_persists_id(self, platform):
        storage = MemoryLocalStorage()
        identity = DeviceIdentity(storage, platform)

        device_id = await identity.get_or_create_device_id()

        assert device_id == "install-123"
        assert identity.device_id == "install-123"
        assert await storage.get_item("device_id") == "install-123"

    @pytest.mark.asyncio
    async def test_is_idempotent(self, platform):
        identity = DeviceIdentity(MemoryLocalStorage(), platform)

        first = await identity.get_or_create_device_id()
        second = await identity.get_or_create_device_id()

        assert first == second
        platform.get_unique_id.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_persisted_id_survives_restart(self, platform):
        """A new instance over the same storage reuses the stored id."""
        storage = MemoryLocalStorage({"device_id": "persisted-id"})
        identity = DeviceIdentity(storage, platform)

        assert await identity.get_or_create_device_id() == "persisted-id"
        platform.get_unique_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_platform_failure_raises_identity_unavailable(self, platform):
        platform.get_unique_id.side_effect = RuntimeError("no hardware id")
        identity = DeviceIdentity(MemoryLocalStorage(), platform)

        with pytest.raises(IdentityUnavailable) as exc_info:
            await identity.get_or_create_device_id()

        assert exc_info.value.source == "platform"
        assert identity.device_id is None

    @pytest.mark.asyncio
    async def test_storage_failure_raises_identity_unavailable(self, platform):
        storage = MagicMock()
        storage.get_item = AsyncMock(side_effect=OSError("disk full"))
        identity = DeviceIdentity(storage, platform)

        with pytest.raises(IdentityUnavailable) as exc_info:
            await identity.get_or_create_device_id()

        assert exc_info.value.source == "storage"

    @pytest.mark.asyncio
    async def test_empty_platform_id_is_rejected(self, platform):
        platform.get_unique_id.return_value = ""
        identity = DeviceIdentity(MemoryLocalStorage(), platform)

        with pytest.raises(IdentityUnavailable):
            await identity.get_or_create_device_id()

    @pytest.mark.asyncio
    async def test_describe_device(self, platform):
        identity = DeviceIdentity(MemoryLocalStorage(), platform)

        info = await identity.describe_device()

        assert info.to_document() == {
            "deviceId": "install-123",
            "platform": "ios",
            "osVersion": "17.4",
            "appVersion": "2.4.0",
            "brand": "Apple",
            "model": "iPhone 15",
        }

    @pytest.mark.asyncio
    async def test_host_platform_id_is_stable_once_persisted(self):
        storage = MemoryLocalStorage()

        first = await DeviceIdentity(storage, HostDevicePlatform()).get_or_create_device_id()
        second = await DeviceIdentity(storage, HostDevicePlatform()).get_or_create_device_id()

        assert first == second
