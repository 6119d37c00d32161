"""Per-install device identity."""

import logging
from typing import Optional

from ..core.exceptions import IdentityUnavailable
from ..core.protocols import DevicePlatform, LocalStorage
from ..core.value_objects import DeviceInfo

logger = logging.getLogger(__name__)


class DeviceIdentity:
    """Resolves and persists the stable device id of this install.
    
    The id is generated once, stored locally and never changes until the app
    is reinstalled.
    """
    
    def __init__(
        self,
        storage: LocalStorage,
        platform: DevicePlatform,
        storage_key: str = "device_id"
    ):
        self._storage = storage
        self._platform = platform
        self._storage_key = storage_key
        self._device_id: Optional[str] = None
    
    @property
    def device_id(self) -> Optional[str]:
        """The resolved id, or None before ``get_or_create_device_id`` succeeds."""
        return self._device_id
    
    async def get_or_create_device_id(self) -> str:
        """Read the persisted id, generating and persisting one if absent.
        
        Raises:
            IdentityUnavailable: If storage or the platform fails
        """
        if self._device_id:
            return self._device_id
        
        try:
            device_id = await self._storage.get_item(self._storage_key)
        except Exception as e:
            logger.error(f"Error reading device id: {e}")
            raise IdentityUnavailable.from_storage(e) from e
        
        if not device_id:
            try:
                device_id = await self._platform.get_unique_id()
            except Exception as e:
                logger.error(f"Error generating device id: {e}")
                raise IdentityUnavailable.from_platform(e) from e
            if not device_id:
                raise IdentityUnavailable("Device platform returned an empty identifier", source="platform")
            
            try:
                await self._storage.set_item(self._storage_key, device_id)
            except Exception as e:
                logger.error(f"Error persisting device id: {e}")
                raise IdentityUnavailable.from_storage(e) from e
            logger.info(f"Registered new device id {device_id}")
        
        self._device_id = device_id
        return device_id
    
    async def describe_device(self) -> DeviceInfo:
        """Build the deviceInfo snapshot stored on the session record."""
        device_id = await self.get_or_create_device_id()
        return DeviceInfo(
            device_id=device_id,
            platform=self._platform.platform,
            os_version=self._platform.os_version,
            app_version=self._platform.app_version,
            brand=await self._platform.get_brand(),
            model=await self._platform.get_model(),
        )
