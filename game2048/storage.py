"""
Key-value persistence for Game2048.
The engine only ever stores the best score; the store is injected so the
engine never touches the filesystem itself.
"""

import json
import logging
import os
from typing import Dict

from .exceptions import StorageException

logger = logging.getLogger(__name__)


def _check_integer(key: str, value, where: str) -> int:
    # bool is an int subclass; floats would be silently truncated by int()
    if isinstance(value, bool) or not isinstance(value, int):
        raise StorageException(f"Value for {key!r} in {where} is not an integer: {value!r}")
    return value


class KeyValueStore:
    """Base class for integer key-value stores."""

    def get_integer(self, key: str, default: int = 0) -> int:
        raise NotImplementedError

    def set_integer(self, key: str, value: int):
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """In-process store, used by tests and as the fallback."""

    def __init__(self, initial: Dict[str, int] = None):
        self._data = dict(initial or {})

    def get_integer(self, key: str, default: int = 0) -> int:
        return _check_integer(key, self._data.get(key, default), "memory store")

    def set_integer(self, key: str, value: int):
        self._data[key] = int(value)


class JsonFileStore(KeyValueStore):
    """
    Flat JSON object on disk.
    A missing file reads as empty. Unreadable, corrupt or unwritable files
    raise StorageException.
    """

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)

    def _load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            raise StorageException(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageException(f"{self.path} does not hold a JSON object")
        return data

    def get_integer(self, key: str, default: int = 0) -> int:
        return _check_integer(key, self._load().get(key, default), self.path)

    def set_integer(self, key: str, value: int):
        data = self._load()
        data[key] = int(value)
        tmp_path = self.path + ".tmp"
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageException(f"Cannot write {self.path}: {e}") from e
        logger.debug("Stored %s=%d in %s", key, value, self.path)
