"""Caches for generation results.

A cache maps a deterministic request key to a stored value. ``get`` returns
the ``MISSING`` sentinel on a miss, so a stored ``None``/``0``/``""`` is
still a hit. Either method may be sync or async; callers go through
``cache_get`` / ``cache_set``.

Storage layout for ``FileCache``:
    {base_dir}/
      {sha256(key)}.json
"""

from __future__ import annotations

import asyncio
import hashlib
import inspect
import json
import logging
from pathlib import Path
from typing import Any, Protocol
from uuid import uuid4

logger = logging.getLogger(__name__)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class Cache(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> Any: ...


async def cache_get(cache: Cache | None, key: str) -> Any:
    if cache is None:
        return MISSING
    value = cache.get(key)
    if inspect.isawaitable(value):
        value = await value
    return value


async def cache_set(cache: Cache | None, key: str, value: Any) -> None:
    if cache is None:
        return
    result = cache.set(key, value)
    if inspect.isawaitable(result):
        await result


class InMemoryCache:
    """Dict-backed cache. No eviction."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Any:
        return self._data.get(key, MISSING)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class FileCache:
    """One JSON file per key, named by the key's sha256. Values must be JSON-serializable."""

    def __init__(self, base_dir: Path | str) -> None:
        self._base_dir = Path(base_dir)

    def _file_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._base_dir / f"{digest}.json"

    def _read(self, key: str) -> Any:
        path = self._file_for(key)
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return MISSING
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable cache entry {path.name}: {e}")
            return MISSING

    def _write(self, key: str, value: Any) -> None:
        path = self._file_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Readers only ever see a complete file
        tmp_path = path.with_name(f"{path.name}.{uuid4().hex}.tmp")
        try:
            tmp_path.write_text(json.dumps(value, indent=2), encoding="utf-8")
            tmp_path.replace(path)
        finally:
            tmp_path.unlink(missing_ok=True)
        logger.debug(f"Cached {path.name}")

    async def get(self, key: str) -> Any:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, key, value)
