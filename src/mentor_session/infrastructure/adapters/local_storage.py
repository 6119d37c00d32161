"""Local key-value storage adapters."""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)


class MemoryLocalStorage:
    """Process-local storage; contents vanish with the instance."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        await asyncio.sleep(0)
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.sleep(0)
        self._items[key] = value

    async def multi_get(self, keys: Sequence[str]) -> Dict[str, Optional[str]]:
        await asyncio.sleep(0)
        return {key: self._items.get(key) for key in keys}

    async def multi_set(self, pairs: Sequence[Tuple[str, str]]) -> None:
        await asyncio.sleep(0)
        self._items.update(pairs)

    async def multi_remove(self, keys: Sequence[str]) -> None:
        await asyncio.sleep(0)
        for key in keys:
            self._items.pop(key, None)

    async def keys(self) -> List[str]:
        return list(self._items)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._items)


class JsonFileLocalStorage:
    """Storage persisted to a single JSON file.

    Writes replace the file atomically; every multi-key write lands together.
    File I/O runs in a worker thread so the event loop is never blocked.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self._lock = asyncio.Lock()

    def _read(self) -> Dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Local storage file {self.path} is not a JSON object")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    async def _load(self) -> Dict[str, str]:
        return await asyncio.to_thread(self._read)

    async def _mutate(self, apply) -> None:
        async with self._lock:
            data = await self._load()
            apply(data)
            await asyncio.to_thread(self._write, data)

    async def get_item(self, key: str) -> Optional[str]:
        return (await self._load()).get(key)

    async def set_item(self, key: str, value: str) -> None:
        await self._mutate(lambda data: data.__setitem__(key, value))

    async def multi_get(self, keys: Sequence[str]) -> Dict[str, Optional[str]]:
        data = await self._load()
        return {key: data.get(key) for key in keys}

    async def multi_set(self, pairs: Sequence[Tuple[str, str]]) -> None:
        await self._mutate(lambda data: data.update(pairs))

    async def multi_remove(self, keys: Sequence[str]) -> None:
        def remove(data: Dict[str, str]) -> None:
            for key in keys:
                data.pop(key, None)

        await self._mutate(remove)

    async def keys(self) -> List[str]:
        return list(await self._load())
