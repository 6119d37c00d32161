"""Device platform adapter backed by the interpreter host."""

import platform
import uuid
from typing import Optional

from ...__version__ import __version__


class HostDevicePlatform:
    """Describes the machine the process runs on.

    The unique id is random per call; ``DeviceIdentity`` persists the first
    one it receives, which makes it stable for the install.
    """

    def __init__(self, app_version: Optional[str] = None):
        self._app_version = app_version or __version__

    async def get_unique_id(self) -> str:
        return str(uuid.uuid4())

    @property
    def platform(self) -> str:
        return platform.system().lower() or "unknown"

    @property
    def os_version(self) -> str:
        return platform.release()

    @property
    def app_version(self) -> str:
        return self._app_version

    async def get_brand(self) -> Optional[str]:
        return platform.node() or None

    async def get_model(self) -> Optional[str]:
        return platform.machine() or None
