"""Memory store - process-local dict, used for tests and single-process demos."""

from __future__ import annotations

from typing import Any

from envmon.stores.base import Store, decode_value, encode_value

__all__ = ["MemoryStore"]


class MemoryStore(Store):
    """Keeps values as JSON text in a dict.

    Values are serialised on ``set`` and decoded on ``get`` so callers
    never share mutable objects with the store.

    Parameters:
        initial: Optional ``{key: value}`` mapping to pre-populate.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._data[key] = encode_value(key, value)

    async def connect(self) -> None:
        """No-op."""

    async def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        return decode_value(key, raw)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = encode_value(key, value)

    async def close(self) -> None:
        """No-op - data stays available until the object is dropped."""

    def keys(self) -> list[str]:
        return list(self._data)
