"""File store - keeps each key as a JSON document in a directory.

Writes go to a temporary file in the same directory which is then moved
over the target with :func:`os.replace`, so a reader sees either the old
or the new document, never a partial one.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from envmon.exceptions import StorageError
from envmon.stores.base import Store, decode_value, encode_value

__all__ = ["JsonFileStore"]

logger = logging.getLogger("envmon.stores.file")

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileStore(Store):
    """Store values as ``<path>/<key>.json`` files.

    Parameters:
        path: Directory holding the documents (created on ``connect``).
    """

    def __init__(self, *, path: str = "./envmon-data") -> None:
        self._dir = Path(path)

    async def connect(self) -> None:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create store directory {self._dir}: {exc}") from exc
        logger.info("JsonFileStore using %s", self._dir)

    async def get(self, key: str) -> Any | None:
        target = self._path_for(key)
        try:
            raw = target.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Cannot read key {key!r}: {exc}", key=key) from exc
        return decode_value(key, raw)

    async def set(self, key: str, value: Any) -> None:
        payload = encode_value(key, value)
        target = self._path_for(key)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Cannot write key {key!r}: {exc}", key=key) from exc
        logger.debug("Wrote %d bytes to %s", len(payload), target)

    async def close(self) -> None:
        """No-op - every write is already on disk."""

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageError(f"Key {key!r} is not a valid file store key", key=key)
        return self._dir / f"{key}.json"
