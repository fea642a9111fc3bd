"""Default data written to an empty store on first access.

The fleet covers one tunnel/shaft installation: six sensors of different
types, two of them already flagged by operators, and three alerts of
which the informational one is already acknowledged.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from envmon.models import Alert, AlertSeverity, Sensor, SensorStatus, SensorType

__all__ = ["SEED_ACTOR", "default_alerts", "default_sensors"]

# Recorded as ``acknowledgedBy`` on seed alerts that start acknowledged.
SEED_ACTOR = "system"

_SENSORS: list[tuple[str, SensorType, str, float, str, SensorStatus]] = [
    ("Temperature Sensor A1", SensorType.TEMPERATURE, "Tunnel A - Section 1", 24.5, "°C", SensorStatus.ACTIVE),
    ("Gas Detector B2", SensorType.GAS, "Tunnel B - Section 2", 0.02, "ppm", SensorStatus.ACTIVE),
    ("Pressure Monitor C1", SensorType.PRESSURE, "Main Shaft", 101.3, "kPa", SensorStatus.WARNING),
    ("Vibration Sensor D1", SensorType.VIBRATION, "Equipment Bay 1", 2.1, "mm/s", SensorStatus.ACTIVE),
    ("Air Quality Monitor E1", SensorType.AIR_QUALITY, "Ventilation Shaft", 85.0, "AQI", SensorStatus.ACTIVE),
    ("Water Level Sensor F1", SensorType.WATER_LEVEL, "Sump Area", 1.2, "m", SensorStatus.CRITICAL),
]

# (severity, message, source, minutes ago, acknowledged)
_ALERTS: list[tuple[AlertSeverity, str, str, int, bool]] = [
    (AlertSeverity.CRITICAL, "Water level critically high in Sump Area", "Water Level Sensor F1", 5, False),
    (AlertSeverity.WARNING, "Pressure reading above normal threshold", "Pressure Monitor C1", 10, False),
    (AlertSeverity.INFO, "Routine maintenance scheduled for Equipment Bay 1", "System", 15, True),
]


def default_sensors(now: datetime) -> list[Sensor]:
    """Return the default fleet, ids ``"1"`` to ``"6"``, stamped *now*."""
    return [
        Sensor(
            id=str(index),
            name=name,
            sensor_type=sensor_type,
            location=location,
            value=value,
            unit=unit,
            status=status,
            last_update=now,
        )
        for index, (name, sensor_type, location, value, unit, status) in enumerate(_SENSORS, start=1)
    ]


def default_alerts(now: datetime) -> list[Alert]:
    """Return the default alerts, ids ``"1"`` to ``"3"``, dated before *now*."""
    alerts: list[Alert] = []
    for index, (severity, message, source, minutes_ago, acknowledged) in enumerate(_ALERTS, start=1):
        created = now - timedelta(minutes=minutes_ago)
        alerts.append(
            Alert(
                id=str(index),
                severity=severity,
                message=message,
                sensor=source,
                timestamp=created,
                acknowledged=acknowledged,
                acknowledged_by=SEED_ACTOR if acknowledged else None,
                acknowledged_at=created if acknowledged else None,
            )
        )
    return alerts
