"""Key/value state stores."""

import copy
import json
import logging
from pathlib import Path
from typing import Any

import aiofiles

from ramadan_timer.services.ports import KeyValueStorePort

logger = logging.getLogger(__name__)


class InMemoryStateStore(KeyValueStorePort):
    """Process-local store; nothing survives a restart."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    async def get(self, key: str, default: Any = None) -> Any:
        return copy.deepcopy(self._data.get(key, default))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)


class JsonFileStateStore(KeyValueStorePort):
    """All keys in a single JSON object on disk."""

    def __init__(self, file_path: Path) -> None:
        """
        Initialize store.

        Args:
            file_path: State file, usually `AppConfig.state_path`
        """
        self._file_path = file_path
        self._data: dict[str, Any] | None = None

    @property
    def file_path(self) -> Path:
        """State file path."""
        return self._file_path

    async def _ensure_dir(self) -> None:
        parent = self._file_path.parent
        if not parent.exists():
            parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"State directory created: {parent}")

    async def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data

        self._data = {}
        if not self._file_path.exists():
            logger.info("State file not found, starting empty.")
            return self._data

        try:
            async with aiofiles.open(self._file_path, encoding="utf-8") as f:
                content = await f.read()
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"State file is not valid JSON: {e}")
            return self._data
        except OSError as e:
            logger.error(f"State file could not be read: {e}")
            return self._data

        if isinstance(data, dict):
            self._data = data
            logger.info(f"State loaded: {self._file_path}")
        else:
            logger.error("State file does not hold a JSON object, starting empty.")
        return self._data

    async def _flush(self) -> None:
        await self._ensure_dir()
        try:
            async with aiofiles.open(self._file_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(self._data, ensure_ascii=False, indent=2))
        except OSError as e:
            logger.error(f"State could not be saved: {e}")
            raise

    async def get(self, key: str, default: Any = None) -> Any:
        data = await self._load()
        return copy.deepcopy(data.get(key, default))

    async def set(self, key: str, value: Any) -> None:
        data = await self._load()
        data[key] = copy.deepcopy(value)
        await self._flush()

    async def delete(self, key: str) -> None:
        data = await self._load()
        if key in data:
            del data[key]
            await self._flush()
