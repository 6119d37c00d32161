"""Local key-value storage protocol contract."""

from typing import Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable


@runtime_checkable
class LocalStorage(Protocol):
    """On-device persistence for the device id and the token pair."""
    
    async def get_item(self, key: str) -> Optional[str]:
        ...
    
    async def set_item(self, key: str, value: str) -> None:
        ...
    
    async def multi_get(self, keys: Sequence[str]) -> Dict[str, Optional[str]]:
        """Read several keys; missing keys map to None."""
        ...
    
    async def multi_set(self, pairs: Sequence[Tuple[str, str]]) -> None:
        ...
    
    async def multi_remove(self, keys: Sequence[str]) -> None:
        ...
    
    async def keys(self) -> List[str]:
        ...
