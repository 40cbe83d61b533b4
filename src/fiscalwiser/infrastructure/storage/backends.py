"""
Key-value storage backends.

InMemoryStorage serves tests and throwaway sessions; FileStorage keeps one
file per key in a directory, the on-disk counterpart of a browser profile's
local storage.
"""

import os
import re
import tempfile
from pathlib import Path
from threading import RLock

from loguru import logger

from fiscalwiser.core.interfaces.storage import StorageBackend

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class InMemoryStorage(StorageBackend):
    """Dictionary-backed storage."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileStorage(StorageBackend):
    """Directory-backed storage, one ``<key>.json`` file per key.

    Writes go to a temporary file in the same directory and are renamed into
    place, so a reader never sees a half-written record.
    """

    SUFFIX = ".json"

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = RLock()

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Storage key contains unsupported characters: {key!r}")
        return self.directory / f"{key}{self.SUFFIX}"

    def get(self, key: str) -> str | None:
        path = self._path_for(key)
        with self._lock:
            try:
                return path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        with self._lock:
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except OSError:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        logger.debug(f"Wrote {len(value)} bytes to {path}")

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        with self._lock:
            path.unlink(missing_ok=True)
