"""Environmental monitoring engine - live sensor snapshots and alert
acknowledgment for polling dashboards.

Quick start::

    import asyncio

    from envmon import AccessGate, MonitoringService, StaticIdentityProvider
    from envmon.stores import MemoryStore

    async def main() -> None:
        gate = AccessGate(StaticIdentityProvider({"dev-token": {"id": "u1"}}))
        async with MonitoringService(store=MemoryStore(), gate=gate) as service:
            sensors = await service.list_sensors()
            await service.acknowledge_alert("dev-token", "1")

    asyncio.run(main())
"""

from __future__ import annotations

from envmon.auth import AccessGate, HttpIdentityProvider, IdentityProvider, StaticIdentityProvider
from envmon.config import EngineConfig, load_yaml_config
from envmon.exceptions import EnvmonError, NotFound, StorageError, Unauthorized, ValidationError
from envmon.ledger import AlertLedger
from envmon.models import (
    Alert,
    AlertSeverity,
    FleetSummary,
    Identity,
    ReacknowledgePolicy,
    Sensor,
    SensorDraft,
    SensorPatch,
    SensorStatus,
    SensorType,
)
from envmon.refresher import TelemetryRefresher
from envmon.registry import SensorRegistry
from envmon.service import MonitoringService

__all__ = [
    "AccessGate",
    "Alert",
    "AlertLedger",
    "AlertSeverity",
    "EngineConfig",
    "EnvmonError",
    "FleetSummary",
    "HttpIdentityProvider",
    "Identity",
    "IdentityProvider",
    "MonitoringService",
    "NotFound",
    "ReacknowledgePolicy",
    "Sensor",
    "SensorDraft",
    "SensorPatch",
    "SensorRegistry",
    "SensorStatus",
    "SensorType",
    "StaticIdentityProvider",
    "StorageError",
    "TelemetryRefresher",
    "Unauthorized",
    "ValidationError",
    "load_yaml_config",
]

__version__ = "0.1.0"
