"""Telemetry refresher - advances simulated readings on every read cycle.

There is no live sensor feed behind the registry, so each read nudges
every value by a bounded random step and stamps it as fresh.  The step is
a display-simulation detail: it does not depend on sensor type or value.
"""

from __future__ import annotations

import logging
import math
import random
from datetime import datetime

from envmon.models import Sensor

__all__ = ["DEFAULT_AMPLITUDE", "TelemetryRefresher"]

logger = logging.getLogger("envmon.refresher")

DEFAULT_AMPLITUDE = 1.0


class TelemetryRefresher:
    """Applies ``value + δ`` with ``δ ~ U(-amplitude, +amplitude)``.

    Parameters:
        amplitude: Largest absolute change a single refresh may apply.
        precision: Decimal places the new value is rounded to.
        rng: Random source; pass a seeded :class:`random.Random` for
             reproducible runs.
    """

    def __init__(
        self,
        *,
        amplitude: float = DEFAULT_AMPLITUDE,
        precision: int = 2,
        rng: random.Random | None = None,
    ) -> None:
        if not math.isfinite(amplitude) or amplitude < 0:
            raise ValueError(f"amplitude must be a finite, non-negative number, got {amplitude!r}")
        if precision < 0:
            raise ValueError(f"precision must be >= 0, got {precision!r}")
        self.amplitude = amplitude
        self.precision = precision
        self._rng = rng or random.Random()

    def perturb(self, value: float) -> float:
        """Return *value* moved by a random step, rounded, never further
        than ``amplitude`` from the input and never NaN/inf.
        """
        delta = self._rng.uniform(-self.amplitude, self.amplitude)
        candidate = round(value + delta, self.precision)
        # Rounding can overshoot when the stored value carries more digits.
        candidate = min(max(candidate, value - self.amplitude), value + self.amplitude)
        if not math.isfinite(candidate):
            logger.warning("Refresh produced a non-finite value from %r - keeping previous reading", value)
            return value
        # value +/- amplitude may itself land one ulp outside the bound.
        while abs(candidate - value) > self.amplitude:
            candidate = math.nextafter(candidate, value)
        return candidate

    def refresh(self, sensor: Sensor, now: datetime) -> Sensor:
        """Return a refreshed copy of *sensor*; ``last_update`` never moves back."""
        return sensor.model_copy(
            update={
                "value": self.perturb(sensor.value),
                "last_update": max(sensor.last_update, now),
            }
        )

    def refresh_all(self, sensors: list[Sensor], now: datetime) -> list[Sensor]:
        return [self.refresh(sensor, now) for sensor in sensors]
