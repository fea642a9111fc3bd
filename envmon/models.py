"""Data model for the monitoring engine.

Defines the records owned by the registry and the ledger (``Sensor``,
``Alert``), the inputs accepted from operators (``SensorDraft``,
``SensorPatch``), the caller ``Identity`` resolved by the access gate, and
the aggregated ``FleetSummary`` served to dashboards.

Records are stored as JSON with camelCase keys (``lastUpdate``,
``acknowledgedBy``) while Python code uses snake_case attributes.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

__all__ = [
    "Alert",
    "AlertSeverity",
    "FleetSummary",
    "Identity",
    "ReacknowledgePolicy",
    "Sensor",
    "SensorDraft",
    "SensorPatch",
    "SensorStatus",
    "SensorType",
]


class SensorType(StrEnum):
    """Kinds of environmental sensors."""

    TEMPERATURE = "temperature"
    PRESSURE = "pressure"
    GAS = "gas"
    VIBRATION = "vibration"
    AIR_QUALITY = "air_quality"
    WATER_LEVEL = "water_level"
    HUMIDITY = "humidity"
    NOISE = "noise"


class SensorStatus(StrEnum):
    """Operator-controlled sensor status."""

    ACTIVE = "active"
    WARNING = "warning"
    CRITICAL = "critical"
    OFFLINE = "offline"


class AlertSeverity(StrEnum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class ReacknowledgePolicy(StrEnum):
    """What acknowledging an already-acknowledged alert does.

    ``keep_first`` leaves the original actor and time in place,
    ``overwrite`` replaces them with the new actor and time.
    """

    KEEP_FIRST = "keep_first"
    OVERWRITE = "overwrite"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class _Record(BaseModel):
    """Common configuration for stored records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
    )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-safe, camelCase representation used in the store."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        return cls.model_validate(data)


# ---------------------------------------------------------------------------
# Sensors
# ---------------------------------------------------------------------------


class Sensor(_Record):
    """A monitored measurement point and its latest reading.

    Attributes:
        id: Registry-assigned identifier, unique and never reused.
        name: Display name, e.g. ``"Temperature Sensor A1"``.
        sensor_type: One of :class:`SensorType` (``"type"`` in JSON).
        location: Free-text placement, e.g. ``"Tunnel A - Section 1"``.
        unit: Engineering unit string, e.g. ``"°C"``, ``"ppm"``.
        value: Last known reading. Always finite.
        status: Operator-set :class:`SensorStatus`.
        last_update: Time of the latest refresh or mutation (UTC).
    """

    id: str
    name: str
    sensor_type: SensorType = Field(alias="type")
    location: str
    unit: str = ""
    value: float
    status: SensorStatus = SensorStatus.ACTIVE
    last_update: datetime

    @field_validator("last_update")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class SensorDraft(BaseModel):
    """Operator input for a new sensor."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
        allow_inf_nan=False,
    )

    name: str = Field(min_length=1)
    sensor_type: SensorType = Field(alias="type")
    location: str = Field(min_length=1)
    unit: str = ""
    value: float = 0.0


class SensorPatch(BaseModel):
    """Typed partial update for a sensor.

    Only the fields explicitly supplied are merged into the stored record;
    they win over the stored values. ``id`` and ``lastUpdate`` cannot be
    patched.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
        allow_inf_nan=False,
    )

    name: str | None = Field(default=None, min_length=1)
    sensor_type: SensorType | None = Field(default=None, alias="type")
    location: str | None = Field(default=None, min_length=1)
    unit: str | None = None
    value: float | None = None
    status: SensorStatus | None = None

    @model_validator(mode="after")
    def _no_explicit_nulls(self) -> SensorPatch:
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Return ``{attribute: value}`` for the fields that were supplied."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------


class Alert(_Record):
    """A notable event tied to a sensor or to the system.

    ``acknowledged_by`` and ``acknowledged_at`` are present exactly when
    ``acknowledged`` is true.
    """

    id: str
    severity: AlertSeverity
    message: str
    sensor: str
    timestamp: datetime
    acknowledged: bool = False
    acknowledged_by: str | None = None
    acknowledged_at: datetime | None = None

    @field_validator("timestamp", "acknowledged_at")
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _ack_fields_consistent(self) -> Alert:
        has_details = self.acknowledged_by is not None and self.acknowledged_at is not None
        has_any = self.acknowledged_by is not None or self.acknowledged_at is not None
        if self.acknowledged and not has_details:
            raise ValueError("acknowledged alert requires acknowledgedBy and acknowledgedAt")
        if not self.acknowledged and has_any:
            raise ValueError("unacknowledged alert cannot carry acknowledgedBy/acknowledgedAt")
        return self


# ---------------------------------------------------------------------------
# Callers
# ---------------------------------------------------------------------------


class Identity(_Record):
    """Caller identity resolved from a bearer token."""

    id: str = Field(min_length=1)
    email: str = ""
    display_name: str = ""


# ---------------------------------------------------------------------------
# Dashboard aggregate
# ---------------------------------------------------------------------------


class FleetSummary(_Record):
    """Headline numbers for the dashboard overview."""

    total_sensors: int
    by_status: dict[str, int]
    by_type: dict[str, int]
    average_by_type: dict[str, float]
    critical_open: int
    warning_open: int
    acknowledged: int

    @classmethod
    def build(cls, sensors: list[Sensor], alerts: list[Alert]) -> FleetSummary:
        by_status = Counter(s.status.value for s in sensors)
        by_type = Counter(s.sensor_type.value for s in sensors)

        readings: dict[str, list[float]] = defaultdict(list)
        for sensor in sensors:
            readings[sensor.sensor_type.value].append(sensor.value)

        open_alerts = [a for a in alerts if not a.acknowledged]
        return cls(
            total_sensors=len(sensors),
            by_status={status.value: by_status.get(status.value, 0) for status in SensorStatus},
            by_type=dict(by_type),
            average_by_type={t: round(sum(v) / len(v), 2) for t, v in readings.items()},
            critical_open=sum(1 for a in open_alerts if a.severity == AlertSeverity.CRITICAL),
            warning_open=sum(1 for a in open_alerts if a.severity == AlertSeverity.WARNING),
            acknowledged=len(alerts) - len(open_alerts),
        )
