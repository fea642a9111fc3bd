"""Stored collection - one list of records persisted under one store key.

The registry and the ledger each own one of these.  Every
read-modify-persist sequence must run while holding :attr:`lock`;
plain reads of an already seeded collection may skip it because stores
read and write whole values atomically.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import ValidationError as PydanticValidationError

from envmon.exceptions import StorageError
from envmon.models import _Record
from envmon.stores.base import Store

R = TypeVar("R", bound=_Record)

logger = logging.getLogger("envmon.collection")


class StoredCollection(Generic[R]):
    def __init__(
        self,
        store: Store,
        key: str,
        model: type[R],
        seed: Callable[[datetime], list[R]],
        clock: Callable[[], datetime],
    ) -> None:
        self.store = store
        self.key = key
        self.lock = asyncio.Lock()
        self._model = model
        self._seed = seed
        self._clock = clock

    async def load(self) -> list[R] | None:
        """Read and decode the collection; ``None`` if it was never written."""
        raw = await self.store.get(self.key)
        if raw is None:
            return None
        if not isinstance(raw, list):
            raise StorageError(
                f"Corrupt payload under key {self.key!r}: expected a list, got {type(raw).__name__}",
                key=self.key,
            )
        try:
            return [self._model.from_dict(item) for item in raw]
        except PydanticValidationError as exc:
            raise StorageError(f"Corrupt record under key {self.key!r}: {exc}", key=self.key) from exc

    async def save(self, records: list[R]) -> None:
        payload: list[dict[str, Any]] = [record.to_dict() for record in records]
        await self.store.set(self.key, payload)

    async def ensure(self) -> list[R]:
        """Load the collection, seeding it first if the key is absent.

        Caller must hold :attr:`lock`.
        """
        records = await self.load()
        if records is None:
            records = self._seed(self._clock())
            await self.save(records)
            logger.info("Seeded %d default records under key %r", len(records), self.key)
        return records

    async def snapshot(self) -> list[R]:
        records = await self.load()
        if records is not None:
            return records
        async with self.lock:
            return await self.ensure()
