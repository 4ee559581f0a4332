"""
Key-value storage standing in for browser local storage.

Values are opaque strings (serialized JSON blobs); callers own their format.
Every write replaces the stored value wholesale, last writer wins.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from threading import RLock
from typing import Dict, Optional, Protocol

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_PATH = os.getenv("FOUNDER_VALIDATOR_STORAGE", "founder_validator_storage.json")


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})
        self._lock = RLock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)


class JsonFileStorage:
    """
    One JSON object on disk mapping key -> string value.

    The file is re-read on every access so separate processes see each
    other's writes; there is no version check between them.
    """

    def __init__(self, file_path: Optional[str] = None) -> None:
        self._path = Path(file_path or DEFAULT_STORAGE_PATH)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = RLock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError):
            logger.exception("Storage file %s is unreadable, starting empty", self._path)
            return {}
        if not isinstance(data, dict):
            logger.error("Storage file %s does not hold an object, starting empty", self._path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, items: Dict[str, str]) -> None:
        fd, tmp = tempfile.mkstemp(dir=str(self._path.parent), prefix=".storage-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(items, handle, indent=2)
            os.replace(tmp, self._path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            items = self._read()
            items[key] = value
            self._write(items)

    def remove_item(self, key: str) -> None:
        with self._lock:
            items = self._read()
            if items.pop(key, None) is not None:
                self._write(items)
