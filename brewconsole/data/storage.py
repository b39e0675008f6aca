"""Key-value storage backing the persisted session."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

import structlog

from brewconsole.core.exceptions import StorageError

logger = structlog.get_logger(__name__)


class KeyValueStorage(ABC):
    """Minimal string key-value store, modelled on browser local storage."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    def is_available(self) -> bool:
        return True


class MemoryStorage(KeyValueStorage):
    """Process-local storage, used in tests and embedded consoles."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return set(self._data)


class JsonFileStorage(KeyValueStorage):
    """
    JSON file store for a single console user.

    Every write rewrites the whole file. Any filesystem or decoding problem is
    raised as StorageError; callers decide how to degrade.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StorageError(f"Cannot read session file: {exc}", details={"path": str(self.path)})
        if not isinstance(raw, dict):
            raise StorageError("Session file is not a JSON object", details={"path": str(self.path)})
        return {str(k): str(v) for k, v in raw.items() if v is not None}

    def _save(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot write session file: {exc}", details={"path": str(self.path)})

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def is_available(self) -> bool:
        """Probe the file the same way a write would, without keeping anything."""
        probe = "__probe__"
        try:
            data = self._load()
            data[probe] = probe
            self._save(data)
            del data[probe]
            self._save(data)
            return True
        except StorageError as exc:
            logger.warning("Session storage unavailable", path=str(self.path), error=exc.message)
            return False
