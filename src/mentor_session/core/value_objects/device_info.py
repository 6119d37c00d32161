"""Device information value object."""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class DeviceInfo:
    """Snapshot of the device a session runs on.
    
    Overwritten on the session record every time the session is refreshed.
    """
    
    device_id: str
    platform: str
    os_version: str
    app_version: str
    brand: Optional[str] = None
    model: Optional[str] = None
    
    def __post_init__(self) -> None:
        if not self.device_id:
            raise ValueError("Device id cannot be empty")
    
    def to_document(self) -> Dict[str, Any]:
        """Convert to the document shape stored on the session record."""
        return {
            "deviceId": self.device_id,
            "platform": self.platform,
            "osVersion": self.os_version,
            "appVersion": self.app_version,
            "brand": self.brand,
            "model": self.model,
        }
    
    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "DeviceInfo":
        return cls(
            device_id=data["deviceId"],
            platform=data.get("platform", "unknown"),
            os_version=str(data.get("osVersion", "")),
            app_version=str(data.get("appVersion", "")),
            brand=data.get("brand"),
            model=data.get("model"),
        )
    
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
