"""
Key-value persistence.

A small JSON document store backed by one file. Values must be
orjson-serializable. Writes are atomic so a crash never leaves a half
written file behind.
"""

import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

import orjson


logger = logging.getLogger(__name__)


class KeyValueStore:
    """
    JSON-file key-value store.

    With path=None the store lives only in memory, which is what tests
    and throwaway sessions use.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        """
        Initialize store.

        Args:
            path: Backing file; created on first write. None for memory only.
        """
        self._path = Path(path) if path is not None else None
        self._data: dict[str, Any] = self._load()
        self._dirty = False

    def _load(self) -> dict[str, Any]:
        """Read the backing file; a missing or corrupt file is empty."""
        if self._path is None or not self._path.exists():
            return {}

        try:
            data = orjson.loads(self._path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable store {self._path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring store {self._path}: top level is not an object")
            return {}

        return data

    def get(self, key: str, default: Any = None) -> Any:
        """Get a stored value."""
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Store a value and write it through to disk.

        Raises:
            TypeError: If the value cannot be serialized.
        """
        # Fail before mutating when the value is not serializable
        orjson.dumps(value)
        self._data[key] = value
        self._dirty = True
        self.flush()

    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed.
        """
        if key not in self._data:
            return False
        del self._data[key]
        self._dirty = True
        self.flush()
        return True

    def keys(self) -> list[str]:
        """Stored keys."""
        return list(self._data)

    def flush(self) -> None:
        """Write pending changes to the backing file."""
        if self._path is None or not self._dirty:
            return

        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = orjson.dumps(self._data, option=orjson.OPT_INDENT_2)

        with NamedTemporaryFile("wb", dir=str(self._path.parent), delete=False) as tmp:
            tmp.write(payload)
            tmp_path = Path(tmp.name)

        try:
            os.replace(tmp_path, self._path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

        self._dirty = False
        logger.debug(f"Flushed {len(self._data)} keys to {self._path}")

    @property
    def path(self) -> Path | None:
        """Backing file, None for an in-memory store."""
        return self._path

    def __contains__(self, key: object) -> bool:
        return key in self._data
