"""Key-value device stores used by the local persistence adapter.

Storage layout of the file store:
    <storage_dir>/<sanitised_key>.json   — one JSON document per key
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from devsketch.domain.exceptions import LocalStorageFailure

logger = logging.getLogger(__name__)


def _sanitise(name: str, max_len: int = 120) -> str:
    """Replace non-word characters with underscores and truncate."""
    return re.sub(r"[^\w\-]", "_", name)[:max_len].strip("_") or "unnamed"


class KeyValueStore(ABC):
    """Synchronous string-keyed store of JSON-serializable values.

    Implementations raise ``LocalStorageFailure`` for quota and
    serialization problems; the adapter above them absorbs it.
    """

    def __init__(self, quota_bytes: int | None = None):
        self._quota_bytes = quota_bytes

    def _encode(self, key: str, value: Any) -> str:
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise LocalStorageFailure(key, f"value is not serializable: {e}") from e
        if self._quota_bytes is not None and len(encoded.encode("utf-8")) > self._quota_bytes:
            raise LocalStorageFailure(key, "storage quota exceeded")
        return encoded

    @staticmethod
    def _decode(key: str, raw: str) -> Any:
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise LocalStorageFailure(key, f"stored value is corrupt: {e}") from e

    @abstractmethod
    def get(self, key: str) -> Any | None:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store; values are kept encoded so quotas behave like on disk."""

    def __init__(self, quota_bytes: int | None = None):
        super().__init__(quota_bytes)
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else self._decode(key, raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = self._encode(key, value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileKeyValueStore(KeyValueStore):
    """Infrastructure adapter storing each key as a JSON file on local disk."""

    def __init__(self, storage_dir: str, quota_bytes: int | None = None):
        super().__init__(quota_bytes)
        self._storage_dir = Path(storage_dir)

    def _path_for(self, key: str) -> Path:
        return self._storage_dir / f"{_sanitise(key)}.json"

    def get(self, key: str) -> Any | None:
        path = self._path_for(key)
        try:
            if not path.exists():
                return None
            raw = path.read_text("utf-8")
        except OSError as e:
            raise LocalStorageFailure(key, str(e)) from e
        return self._decode(key, raw)

    def set(self, key: str, value: Any) -> None:
        encoded = self._encode(key, value)
        path = self._path_for(key)
        tmp_path = path.with_suffix(".tmp")
        try:
            self._storage_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(encoded, "utf-8")
            tmp_path.replace(path)
        except OSError as e:
            raise LocalStorageFailure(key, str(e)) from e
        logger.debug("Stored local key %s (%d bytes)", key, len(encoded))

    def delete(self, key: str) -> None:
        try:
            self._path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise LocalStorageFailure(key, str(e)) from e
