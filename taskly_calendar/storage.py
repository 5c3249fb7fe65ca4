"""Key-value persistence used by the category color store."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional, Protocol


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """Dict-backed store, mainly for tests and demos."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStore:
    """Stores every key in a single JSON object file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, dict):
            raise ValueError(f"{self.path}: store file must hold a JSON object")
        return payload

    def _write(self, key: str, value: str) -> None:
        payload = self._read()
        payload[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self.path)

    async def get(self, key: str) -> Optional[str]:
        payload = await asyncio.to_thread(self._read)
        value = payload.get(key)
        return None if value is None else str(value)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)
