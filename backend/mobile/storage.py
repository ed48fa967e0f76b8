"""
Local key-value storage for the client.

Three layers:
- KeyValueStorage: the platform store (string keys, string values)
- TokenStore: the session token under a fixed key
- PreferenceCache: the last known theme and plugin preferences

Values are plain strings so any platform store fits behind the protocol.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from shared.themes import with_core_themes

from .exceptions import StorageError
from .models import PluginEntry

logger = logging.getLogger(__name__)

TOKEN_KEY = "jwt_token"
THEME_PREFERENCE_KEY = "theme_preference"
ENABLED_THEMES_KEY = "enabled_themes"
ENABLED_PLUGINS_KEY = "enabled_plugins"


@runtime_checkable
class KeyValueStorage(Protocol):
    """Interface for the platform key-value store."""

    async def get_item(self, key: str) -> Optional[str]:
        ...

    async def set_item(self, key: str, value: str) -> None:
        ...

    async def remove_item(self, key: str) -> None:
        ...


class MemoryStorage:
    """In-process store. Used in tests and as a last-resort fallback."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage:
    """
    JSON-file store for desktop and CLI clients.

    The whole file is rewritten on each change; writes go through a
    temporary file and a rename so a crash never leaves half a file.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path).expanduser()
        self._lock = asyncio.Lock()

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read {self._path}: {e}") from e
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text(json.dumps(data), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as e:
            raise StorageError(f"Cannot write {self._path}: {e}") from e

    async def get_item(self, key: str) -> Optional[str]:
        data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data[key] = value
            await asyncio.to_thread(self._write, data)

    async def remove_item(self, key: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            if data.pop(key, None) is not None:
                await asyncio.to_thread(self._write, data)


class TokenStore:
    """Holds the session token. Failures propagate; a lost token is not silent."""

    def __init__(self, storage: KeyValueStorage):
        self._storage = storage

    async def get(self) -> Optional[str]:
        return await self._storage.get_item(TOKEN_KEY)

    async def save(self, token: str) -> None:
        await self._storage.set_item(TOKEN_KEY, token)

    async def clear(self) -> None:
        await self._storage.remove_item(TOKEN_KEY)

    async def has_token(self) -> bool:
        return await self.get() is not None


class PreferenceCache:
    """
    Last known preferences, readable without the network.

    Reads never raise: an unreadable or malformed entry counts as absent.
    Writes log and swallow storage failures, because the in-memory state
    is already correct and the cache only matters at the next start.
    """

    def __init__(self, storage: KeyValueStorage):
        self._storage = storage

    async def _get(self, key: str) -> Optional[str]:
        try:
            return await self._storage.get_item(key)
        except StorageError:
            logger.warning(f"Failed to read cached {key}", exc_info=True)
            return None

    async def _set(self, key: str, value: str) -> bool:
        try:
            await self._storage.set_item(key, value)
            return True
        except StorageError:
            logger.warning(f"Failed to cache {key}", exc_info=True)
            return False

    async def load_current_theme(self) -> Optional[str]:
        return await self._get(THEME_PREFERENCE_KEY)

    async def load_enabled_themes(self) -> Optional[list[str]]:
        raw = await self._get(ENABLED_THEMES_KEY)
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed cached enabled themes")
            return None
        if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
            return None
        return with_core_themes(value)

    async def load_plugins(self) -> Optional[list[PluginEntry]]:
        raw = await self._get(ENABLED_PLUGINS_KEY)
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed cached plugins")
            return None
        if not isinstance(value, list):
            return None

        entries = []
        for item in value:
            # Older caches held bare plugin ids
            if isinstance(item, str):
                entries.append(PluginEntry(id=item))
            elif isinstance(item, dict) and isinstance(item.get("id"), str):
                entries.append(PluginEntry(id=item["id"], settings=dict(item.get("settings") or {})))
        return entries

    async def save_current_theme(self, theme_id: str) -> bool:
        return await self._set(THEME_PREFERENCE_KEY, theme_id)

    async def save_enabled_themes(self, theme_ids: list[str]) -> bool:
        return await self._set(ENABLED_THEMES_KEY, json.dumps(list(theme_ids)))

    async def save_plugins(self, plugins: list[PluginEntry]) -> bool:
        return await self._set(ENABLED_PLUGINS_KEY, json.dumps([p.to_cache() for p in plugins]))

    async def clear(self) -> None:
        for key in (THEME_PREFERENCE_KEY, ENABLED_THEMES_KEY, ENABLED_PLUGINS_KEY):
            try:
                await self._storage.remove_item(key)
            except StorageError:
                logger.warning(f"Failed to clear cached {key}", exc_info=True)
