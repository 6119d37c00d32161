"""Session record key value object."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionKey:
    """Identifies the one session record of a (user, device) pair.
    
    The document id is ``userId + "_" + deviceId``; re-creating a session on
    the same device therefore updates the same record.
    """
    
    user_id: str
    device_id: str
    
    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("User id cannot be empty")
        if not self.device_id:
            raise ValueError("Device id cannot be empty")
    
    @property
    def doc_id(self) -> str:
        return f"{self.user_id}_{self.device_id}"
    
    def __str__(self) -> str:
        return self.doc_id
