"""Tests for envmon.service - MonitoringService end to end."""

from __future__ import annotations

import asyncio
import random

import pytest

from envmon.auth import AccessGate, HttpIdentityProvider, StaticIdentityProvider
from envmon.config import EngineConfig
from envmon.exceptions import EnvmonConfigError, NotFound, Unauthorized, ValidationError
from envmon.ledger import AlertLedger
from envmon.models import ReacknowledgePolicy, SensorDraft, SensorStatus, SensorType
from envmon.refresher import TelemetryRefresher
from envmon.registry import SensorRegistry
from envmon.seed import default_sensors
from envmon.service import MonitoringService
from envmon.stores.memory import MemoryStore

TOKEN = "valid-token"


def _service(store: MemoryStore | None = None, **ledger_kwargs) -> MonitoringService:
    store = store if store is not None else MemoryStore()
    gate = AccessGate(StaticIdentityProvider({TOKEN: {"id": "u1", "email": "u1@example.com"}}))
    return MonitoringService(
        store=store,
        gate=gate,
        registry=SensorRegistry(store, refresher=TelemetryRefresher(rng=random.Random(3))),
        ledger=AlertLedger(store, **ledger_kwargs),
    )


_X1 = {"name": "X1", "type": "temperature", "location": "Tunnel A - Section 2", "unit": "°C", "value": 20.0}


# -----------------------------------------------------------------------
# Sensor scenarios
# -----------------------------------------------------------------------


class TestSensors:
    @pytest.mark.asyncio
    async def test_seed_then_add(self) -> None:
        service = _service()

        first = await service.list_sensors()
        assert [s.id for s in first] == ["1", "2", "3", "4", "5", "6"]
        seeds = {s.id: s.value for s in default_sensors(first[0].last_update)}
        for sensor in first:
            assert abs(sensor.value - seeds[sensor.id]) <= 1.0

        added = await service.add_sensor(TOKEN, _X1)
        assert added.name == "X1"
        assert added.status == SensorStatus.ACTIVE
        assert added.value == 20.0

        second = await service.list_sensors()
        assert len(second) == 7
        assert second[-1].id == added.id
        for before, after in zip(first, second[:6], strict=True):
            assert abs(after.value - before.value) <= 1.0
        assert len({s.id for s in second}) == 7

    @pytest.mark.asyncio
    async def test_each_read_refreshes(self) -> None:
        service = _service()
        first = await service.list_sensors()
        second = await service.list_sensors()
        for before, after in zip(first, second, strict=True):
            assert abs(after.value - before.value) <= 1.0
            assert after.last_update >= before.last_update

    @pytest.mark.asyncio
    async def test_add_accepts_model(self) -> None:
        service = _service()
        draft = SensorDraft(name="Gas B3", sensor_type=SensorType.GAS, location="Tunnel B", unit="ppm", value=0.01)
        sensor = await service.add_sensor(TOKEN, draft)
        assert sensor.sensor_type == SensorType.GAS

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, "", "forged"])
    async def test_add_without_valid_token(self, token: str | None) -> None:
        service = _service()
        before = await service.registry.list()
        with pytest.raises(Unauthorized):
            await service.add_sensor(token, _X1)
        assert await service.registry.list() == before

    @pytest.mark.asyncio
    async def test_auth_is_checked_before_payload(self) -> None:
        service = _service()
        with pytest.raises(Unauthorized):
            await service.add_sensor(None, {"name": ""})

    @pytest.mark.asyncio
    async def test_add_invalid_payload(self) -> None:
        service = _service()
        with pytest.raises(ValidationError) as excinfo:
            await service.add_sensor(TOKEN, {**_X1, "name": ""})
        assert "name" in str(excinfo.value)
        assert excinfo.value.errors
        assert len(await service.registry.list()) == 6

    @pytest.mark.asyncio
    async def test_add_non_object_payload(self) -> None:
        service = _service()
        with pytest.raises(ValidationError, match="Expected an object"):
            await service.add_sensor(TOKEN, ["X1"])  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_update(self) -> None:
        service = _service()
        updated = await service.update_sensor(TOKEN, "3", {"status": "active", "value": 100.0})
        assert updated.status == SensorStatus.ACTIVE
        assert updated.value == 100.0
        assert updated.name == "Pressure Monitor C1"

    @pytest.mark.asyncio
    async def test_update_unknown_sensor(self) -> None:
        service = _service()
        with pytest.raises(NotFound):
            await service.update_sensor(TOKEN, "999", {"value": 1.0})

    @pytest.mark.asyncio
    async def test_update_unauthorized(self) -> None:
        service = _service()
        before = await service.registry.list()
        with pytest.raises(Unauthorized):
            await service.update_sensor("forged", "3", {"value": 1.0})
        assert await service.registry.list() == before

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_field(self) -> None:
        service = _service()
        with pytest.raises(ValidationError):
            await service.update_sensor(TOKEN, "3", {"colour": "red"})

    @pytest.mark.asyncio
    async def test_concurrent_reads_and_writes(self) -> None:
        service = _service()
        await asyncio.gather(
            *(service.list_sensors() for _ in range(5)),
            *(service.add_sensor(TOKEN, {**_X1, "name": f"X{i}"}) for i in range(5)),
        )
        sensors = await service.registry.list()
        assert len(sensors) == 11
        assert len({s.id for s in sensors}) == 11


# -----------------------------------------------------------------------
# Alert scenarios
# -----------------------------------------------------------------------


class TestAlerts:
    @pytest.mark.asyncio
    async def test_seed_then_acknowledge(self) -> None:
        service = _service()

        alerts = await service.list_alerts()
        assert [a.id for a in alerts] == ["1", "2", "3"]
        assert [a.acknowledged for a in alerts] == [False, False, True]

        acked = await service.acknowledge_alert(TOKEN, "1")
        assert acked.acknowledged is True
        assert acked.acknowledged_by == "u1"
        assert acked.acknowledged_at is not None

        stored = await service.list_alerts()
        assert stored[0].acknowledged is True

        with pytest.raises(NotFound) as excinfo:
            await service.acknowledge_alert(TOKEN, "999")
        assert excinfo.value.kind == "alert"
        assert excinfo.value.ident == "999"

    @pytest.mark.asyncio
    async def test_acknowledge_unauthorized(self) -> None:
        service = _service()
        before = await service.list_alerts()
        with pytest.raises(Unauthorized):
            await service.acknowledge_alert(None, "1")
        assert await service.list_alerts() == before

    @pytest.mark.asyncio
    async def test_list_alerts_is_stable(self) -> None:
        service = _service()
        assert await service.list_alerts() == await service.list_alerts()

    @pytest.mark.asyncio
    async def test_overwrite_policy(self) -> None:
        store = MemoryStore()
        service = _service(store, reacknowledge=ReacknowledgePolicy.OVERWRITE)
        acked = await service.acknowledge_alert(TOKEN, "3")
        assert acked.acknowledged_by == "u1"


# -----------------------------------------------------------------------
# Overview
# -----------------------------------------------------------------------


class TestOverview:
    @pytest.mark.asyncio
    async def test_summary(self) -> None:
        service = _service()
        summary = await service.summary()
        assert summary.total_sensors == 6
        assert summary.by_status[SensorStatus.ACTIVE] == 4
        assert summary.by_status[SensorStatus.WARNING] == 1
        assert summary.by_status[SensorStatus.CRITICAL] == 1
        assert summary.critical_open == 1
        assert summary.warning_open == 1
        assert summary.acknowledged == 1

    @pytest.mark.asyncio
    async def test_summary_does_not_refresh(self) -> None:
        service = _service()
        before = await service.registry.list()
        await service.summary()
        assert await service.registry.list() == before

    def test_health(self) -> None:
        assert _service().health() == {"status": "ok"}


# -----------------------------------------------------------------------
# Construction / lifecycle
# -----------------------------------------------------------------------


class TestFromConfig:
    @pytest.mark.asyncio
    async def test_mutation_before_start_raises_engine_error(self) -> None:
        pytest.importorskip("httpx")
        store = MemoryStore()
        service = MonitoringService(store=store, gate=AccessGate(HttpIdentityProvider(url="https://auth.example.com")))
        with pytest.raises(EnvmonConfigError, match="not connected"):
            await service.add_sensor("tok", _X1)
        assert store.keys() == []

    @pytest.mark.asyncio
    async def test_memory_store_and_static_tokens(self) -> None:
        cfg = EngineConfig(
            amplitude=0.5,
            random_seed=11,
            reacknowledge="overwrite",
            identity_config={"type": "static", "tokens": {"t": {"id": "ops"}}},
        )
        async with MonitoringService.from_config(cfg) as service:
            assert isinstance(service.store, MemoryStore)
            assert service.registry.refresher.amplitude == 0.5
            assert service.ledger.reacknowledge == ReacknowledgePolicy.OVERWRITE
            acked = await service.acknowledge_alert("t", "2")
            assert acked.acknowledged_by == "ops"

    @pytest.mark.asyncio
    async def test_file_store_persists_across_instances(self, tmp_path) -> None:
        cfg = EngineConfig(
            store_config={"type": "file", "path": str(tmp_path)},
            identity_config={"type": "static", "tokens": {"t": {"id": "ops"}}},
        )
        async with MonitoringService.from_config(cfg) as service:
            added = await service.add_sensor("t", _X1)

        async with MonitoringService.from_config(cfg) as service:
            sensors = await service.registry.list()
        assert sensors[-1].id == added.id
        assert (tmp_path / "sensors.json").exists()

    @pytest.mark.asyncio
    async def test_same_seed_same_readings(self) -> None:
        cfg = EngineConfig(random_seed=5)
        async with MonitoringService.from_config(cfg) as a, MonitoringService.from_config(cfg) as b:
            assert [s.value for s in await a.list_sensors()] == [s.value for s in await b.list_sensors()]
