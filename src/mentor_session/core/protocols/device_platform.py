"""Device platform protocol contract."""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class DevicePlatform(Protocol):
    """Host platform facts used for the device id and the deviceInfo snapshot."""
    
    async def get_unique_id(self) -> str:
        """Return a stable unique identifier for this install."""
        ...
    
    @property
    def platform(self) -> str:
        ...
    
    @property
    def os_version(self) -> str:
        ...
    
    @property
    def app_version(self) -> str:
        ...
    
    async def get_brand(self) -> Optional[str]:
        ...
    
    async def get_model(self) -> Optional[str]:
        ...
