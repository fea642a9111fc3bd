"""MonitoringService - the transport-agnostic surface of the engine.

Wires one store, one access gate, one sensor registry and one alert
ledger together.  Build it once at process start and hand the instance
to whatever transport serves requests::

    from envmon import MonitoringService, load_yaml_config

    async with MonitoringService.from_config(load_yaml_config("envmon.yaml")) as service:
        sensors = await service.list_sensors()
        await service.acknowledge_alert(token, "1")
"""

from __future__ import annotations

import logging
import random
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from envmon.auth import AccessGate, create_identity_provider
from envmon.config import EngineConfig
from envmon.exceptions import ValidationError
from envmon.ledger import AlertLedger
from envmon.models import Alert, FleetSummary, Sensor, SensorDraft, SensorPatch
from envmon.refresher import TelemetryRefresher
from envmon.registry import SensorRegistry
from envmon.stores.base import Store
from envmon.stores.factory import create_store

__all__ = ["MonitoringService"]

logger = logging.getLogger("envmon")

M = TypeVar("M", bound=BaseModel)


def _coerce(model: type[M], payload: M | dict[str, Any]) -> M:
    """Validate a dict payload into *model*, mapping pydantic errors."""
    if isinstance(payload, model):
        return payload
    if not isinstance(payload, dict):
        raise ValidationError(f"Expected an object for {model.__name__}, got {type(payload).__name__}")
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        errors = exc.errors(include_url=False)
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "<root>" for err in errors)
        raise ValidationError(f"Invalid {model.__name__}: {fields}", errors=errors) from exc


class MonitoringService:
    """Operations exposed to dashboard clients.

    Reads (``list_sensors``, ``list_alerts``, ``summary``) need no
    credential.  Mutations take the caller's bearer token and fail with
    :class:`~envmon.exceptions.Unauthorized` before touching any state
    when it is missing or rejected.

    Parameters:
        store: Backing store shared by the registry and the ledger.
        gate: Access gate used for mutations.
        registry: Sensor registry (defaults to one over *store*).
        ledger: Alert ledger (defaults to one over *store*).
    """

    def __init__(
        self,
        *,
        store: Store,
        gate: AccessGate,
        registry: SensorRegistry | None = None,
        ledger: AlertLedger | None = None,
    ) -> None:
        self.store = store
        self.gate = gate
        self.registry = registry or SensorRegistry(store)
        self.ledger = ledger or AlertLedger(store)

    # ------------------------------------------------------------------
    # Construction / lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def from_config(cls, config: EngineConfig) -> MonitoringService:
        """Build the full object graph described by *config*."""
        logger.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))

        store = create_store(config.store_config)
        refresher = TelemetryRefresher(
            amplitude=config.amplitude,
            precision=config.precision,
            rng=random.Random(config.random_seed),
        )
        return cls(
            store=store,
            gate=AccessGate(create_identity_provider(config.identity_config)),
            registry=SensorRegistry(store, key=config.sensors_key, refresher=refresher),
            ledger=AlertLedger(store, key=config.alerts_key, reacknowledge=config.reacknowledge),
        )

    async def start(self) -> None:
        """Connect the store and the identity provider."""
        await self.store.connect()
        await self.gate.provider.connect()
        logger.info(
            "Monitoring service started (store=%s, identity=%s)",
            type(self.store).__name__,
            type(self.gate.provider).__name__,
        )

    async def stop(self) -> None:
        await self.gate.provider.close()
        await self.store.close()
        logger.info("Monitoring service stopped")

    async def __aenter__(self) -> MonitoringService:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Sensors
    # ------------------------------------------------------------------

    async def list_sensors(self) -> list[Sensor]:
        """Return every sensor, refreshed as part of this read."""
        return await self.registry.refresh_all()

    async def add_sensor(self, token: str | None, draft: SensorDraft | dict[str, Any]) -> Sensor:
        identity = await self.gate.require(token)
        return await self.registry.add(_coerce(SensorDraft, draft), identity)

    async def update_sensor(
        self,
        token: str | None,
        sensor_id: str,
        patch: SensorPatch | dict[str, Any],
    ) -> Sensor:
        identity = await self.gate.require(token)
        return await self.registry.update_partial(sensor_id, _coerce(SensorPatch, patch), identity)

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    async def list_alerts(self) -> list[Alert]:
        return await self.ledger.list()

    async def acknowledge_alert(self, token: str | None, alert_id: str) -> Alert:
        identity = await self.gate.require(token)
        return await self.ledger.acknowledge(alert_id, identity)

    # ------------------------------------------------------------------
    # Overview
    # ------------------------------------------------------------------

    async def summary(self) -> FleetSummary:
        """Headline counts for the dashboard; does not refresh readings."""
        sensors = await self.registry.list()
        alerts = await self.ledger.list()
        return FleetSummary.build(sensors, alerts)

    def health(self) -> dict[str, str]:
        return {"status": "ok"}
