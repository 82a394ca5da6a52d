"""Durable key/value stores for keys, preferences and history."""

import json
import logging
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class StorageKey(str, Enum):
    """Keys written to the local store. Values are always strings."""

    CLAUDE_API_KEY = "claude_api_key"
    PERPLEXITY_API_KEY = "perplexity_api_key"
    MISTRAL_API_KEY = "mistral_api_key"
    API_PROVIDER = "api_provider"
    THEME = "theme"
    CHAT_HISTORY = "chat_history"
    CHAT_HISTORY_DATA = "chat_history_data"


class KeyValueStore(Protocol):
    """String-to-string store with immediate persistence."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """In-process store. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Copy of the current contents."""
        return dict(self._data)


class JsonFileStore:
    """Store backed by a single JSON object on disk.

    The file is read once at construction and rewritten atomically on
    every set/remove.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._data: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring store {self.path}: expected a JSON object")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".store-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
        logger.debug(f"Wrote {len(self._data)} keys to {self.path}")

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()
