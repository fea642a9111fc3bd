"""Alert ledger - owns the alert collection and its acknowledgment state.

Acknowledgment is one-way: nothing in the ledger ever sets
``acknowledged`` back to false.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from envmon._collection import StoredCollection
from envmon._ids import next_id
from envmon.exceptions import NotFound, Unauthorized, ValidationError
from envmon.models import Alert, AlertSeverity, Identity, ReacknowledgePolicy
from envmon.seed import default_alerts
from envmon.stores.base import Store

__all__ = ["AlertLedger"]

logger = logging.getLogger("envmon.ledger")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AlertLedger:
    """List, raise and acknowledge alerts.

    Parameters:
        store: Backing :class:`~envmon.stores.base.Store`.
        key: Store key holding the alert list.
        reacknowledge: Behaviour when an acknowledged alert is
            acknowledged again (see :class:`ReacknowledgePolicy`).
        clock: Returns the current UTC time.
    """

    def __init__(
        self,
        store: Store,
        *,
        key: str = "alerts",
        reacknowledge: ReacknowledgePolicy = ReacknowledgePolicy.KEEP_FIRST,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._clock = clock
        self.reacknowledge = ReacknowledgePolicy(reacknowledge)
        self._alerts: StoredCollection[Alert] = StoredCollection(store, key, Alert, default_alerts, clock)

    async def list(self) -> list[Alert]:
        return await self._alerts.snapshot()

    async def get(self, alert_id: str) -> Alert:
        for alert in await self._alerts.snapshot():
            if alert.id == alert_id:
                return alert
        raise NotFound("alert", alert_id)

    async def acknowledge(self, alert_id: str, identity: Identity | None) -> Alert:
        """Mark an alert acknowledged by *identity*.

        Under ``keep_first`` a repeated acknowledgment returns the stored
        record untouched; under ``overwrite`` it records the new actor
        and time.
        """
        if identity is None:
            raise Unauthorized()

        async with self._alerts.lock:
            alerts = await self._alerts.ensure()
            for index, alert in enumerate(alerts):
                if alert.id == alert_id:
                    break
            else:
                raise NotFound("alert", alert_id)

            if alert.acknowledged and self.reacknowledge == ReacknowledgePolicy.KEEP_FIRST:
                logger.debug(
                    "Alert %s already acknowledged by %s - ignoring repeat from %s",
                    alert_id,
                    alert.acknowledged_by,
                    identity.id,
                )
                return alert

            updated = alert.model_copy(
                update={
                    "acknowledged": True,
                    "acknowledged_by": identity.id,
                    "acknowledged_at": self._clock(),
                }
            )
            alerts[index] = updated
            await self._alerts.save(alerts)

        logger.info("Alert %s acknowledged by %s", alert_id, identity.id)
        return updated

    async def raise_alert(self, severity: AlertSeverity | str, message: str, sensor: str) -> Alert:
        """Append a new, unacknowledged alert.

        *sensor* is the display name of the source (a sensor name or
        ``"System"``).
        """
        try:
            severity = AlertSeverity(severity)
        except ValueError as exc:
            raise ValidationError(f"Unknown alert severity {severity!r}") from exc
        if not message.strip():
            raise ValidationError("Alert message must not be empty")

        async with self._alerts.lock:
            alerts = await self._alerts.ensure()
            now = self._clock()
            alert = Alert(
                id=next_id((a.id for a in alerts), now),
                severity=severity,
                message=message,
                sensor=sensor,
                timestamp=now,
            )
            alerts.append(alert)
            await self._alerts.save(alerts)

        logger.info("Raised %s alert %s for %s: %s", alert.severity.value, alert.id, sensor, message)
        return alert
