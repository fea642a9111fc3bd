"""Sensor registry - owns the sensor collection.

Every "list sensors" request goes through :meth:`SensorRegistry.refresh_all`,
which advances all readings and persists the result, so two consecutive
reads never return the same values.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from envmon._collection import StoredCollection
from envmon._ids import next_id
from envmon.exceptions import NotFound, Unauthorized
from envmon.models import Identity, Sensor, SensorDraft, SensorPatch, SensorStatus
from envmon.refresher import TelemetryRefresher
from envmon.seed import default_sensors
from envmon.stores.base import Store

__all__ = ["SensorRegistry"]

logger = logging.getLogger("envmon.registry")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SensorRegistry:
    """List, refresh, add and patch sensors.

    Mutations (including the bulk refresh) are serialised by one lock so
    concurrent requests never drop each other's writes.

    Parameters:
        store: Backing :class:`~envmon.stores.base.Store`.
        key: Store key holding the sensor list.
        refresher: Applies the per-read value perturbation.
        clock: Returns the current UTC time.
    """

    def __init__(
        self,
        store: Store,
        *,
        key: str = "sensors",
        refresher: TelemetryRefresher | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._clock = clock
        self._refresher = refresher or TelemetryRefresher()
        self._sensors: StoredCollection[Sensor] = StoredCollection(store, key, Sensor, default_sensors, clock)

    @property
    def refresher(self) -> TelemetryRefresher:
        return self._refresher

    async def list(self) -> list[Sensor]:
        """Return the current sensors without refreshing them."""
        return await self._sensors.snapshot()

    async def get(self, sensor_id: str) -> Sensor:
        for sensor in await self._sensors.snapshot():
            if sensor.id == sensor_id:
                return sensor
        raise NotFound("sensor", sensor_id)

    async def refresh_all(self) -> list[Sensor]:
        """Advance every reading, stamp it and persist the whole fleet."""
        async with self._sensors.lock:
            sensors = await self._sensors.ensure()
            refreshed = self._refresher.refresh_all(sensors, self._clock())
            await self._sensors.save(refreshed)
        logger.debug("Refreshed %d sensors", len(refreshed))
        return refreshed

    async def add(self, draft: SensorDraft, identity: Identity | None) -> Sensor:
        if identity is None:
            raise Unauthorized()

        async with self._sensors.lock:
            sensors = await self._sensors.ensure()
            now = self._clock()
            sensor = Sensor(
                id=next_id((s.id for s in sensors), now),
                name=draft.name,
                sensor_type=draft.sensor_type,
                location=draft.location,
                unit=draft.unit,
                value=draft.value,
                status=SensorStatus.ACTIVE,
                last_update=now,
            )
            sensors.append(sensor)
            await self._sensors.save(sensors)

        logger.info("Sensor %s (%s) added by %s", sensor.id, sensor.name, identity.id)
        return sensor

    async def update_partial(self, sensor_id: str, patch: SensorPatch, identity: Identity | None) -> Sensor:
        """Merge *patch* into the stored sensor; supplied fields win."""
        if identity is None:
            raise Unauthorized()

        async with self._sensors.lock:
            sensors = await self._sensors.ensure()
            for index, sensor in enumerate(sensors):
                if sensor.id == sensor_id:
                    break
            else:
                raise NotFound("sensor", sensor_id)

            changes = patch.changes()
            updated = sensor.model_copy(
                update={**changes, "last_update": max(sensor.last_update, self._clock())}
            )
            sensors[index] = updated
            await self._sensors.save(sensors)

        logger.info("Sensor %s updated by %s: %s", sensor_id, identity.id, sorted(changes))
        return updated
