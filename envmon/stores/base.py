"""State store abstraction.

The engine only needs a durable ``get``/``set`` mapping from a string key
to a JSON-serialisable value. Concrete stores implement the four
coroutines below; whole-value reads and writes must be atomic so readers
never observe a half-written collection.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from envmon.exceptions import StorageError

__all__ = ["Store", "decode_value", "encode_value"]


def encode_value(key: str, value: Any) -> str:
    """Serialise *value* to compact JSON or raise :class:`StorageError`."""
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise StorageError(f"Value for key {key!r} is not JSON-serialisable: {exc}", key=key) from exc


def decode_value(key: str, raw: str | bytes) -> Any:
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise StorageError(f"Corrupt payload stored under key {key!r}: {exc}", key=key) from exc


class Store(ABC):
    """Abstract base class for all state stores.

    ``get`` returns ``None`` when the key has never been set. Both ``get``
    and ``set`` raise :class:`~envmon.exceptions.StorageError` on backend
    failure.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Open connections / resources."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value stored under *key*, or ``None``."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Replace the value stored under *key*."""

    @abstractmethod
    async def close(self) -> None:
        """Release resources / close connections."""
