"""Adapters for local storage, the device platform and the identity provider."""

from .local_storage import JsonFileLocalStorage, MemoryLocalStorage
from .host_device_platform import HostDevicePlatform
from .memory_identity_provider import InMemoryIdentityProvider

__all__ = [
    "JsonFileLocalStorage",
    "MemoryLocalStorage",
    "HostDevicePlatform",
    "InMemoryIdentityProvider",
]
