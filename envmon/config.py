"""Configuration loader for the monitoring engine.

Parses YAML files with the following top-level sections::

    engine:      # refresh amplitude, re-acknowledge policy, keys, log level
    store:       # store config dict passed to the store factory
    identity:    # identity provider config (static token table or http)

Example:

.. code-block:: yaml

    engine:
      amplitude: 1.0
      precision: 2
      reacknowledge: keep_first     # or: overwrite
      log_level: INFO

    store:
      type: file
      path: /var/lib/envmon

    identity:
      type: http
      url: https://project.supabase.co
      api_key: public-anon-key
      timeout_s: 5
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from envmon.models import ReacknowledgePolicy
from envmon.refresher import DEFAULT_AMPLITUDE

__all__ = ["EngineConfig", "load_yaml_config"]

logger = logging.getLogger("envmon.config")


class EngineConfig(BaseModel):
    """Parsed representation of the full YAML configuration.

    Attributes:
        amplitude: Largest change a single refresh applies to a reading.
        precision: Decimal places refreshed readings are rounded to.
        random_seed: Seed for the refresh random source (``None`` = OS entropy).
        reacknowledge: Policy for acknowledging an acknowledged alert.
        sensors_key: Store key of the sensor collection.
        alerts_key: Store key of the alert collection.
        log_level: Level applied to the ``envmon`` logger.
        store_config: Raw dict passed to :func:`envmon.stores.create_store`.
        identity_config: Raw dict passed to
            :func:`envmon.auth.create_identity_provider`.
    """

    model_config = ConfigDict(extra="forbid")

    amplitude: float = Field(default=DEFAULT_AMPLITUDE, ge=0)
    precision: int = Field(default=2, ge=0)
    random_seed: int | None = None
    reacknowledge: ReacknowledgePolicy = ReacknowledgePolicy.KEEP_FIRST
    sensors_key: str = "sensors"
    alerts_key: str = "alerts"
    log_level: str = "INFO"
    store_config: dict[str, Any] = Field(default_factory=lambda: {"type": "memory"})
    identity_config: dict[str, Any] = Field(default_factory=lambda: {"type": "static"})


def load_yaml_config(path: str | Path) -> EngineConfig:
    """Load and validate a YAML configuration file.

    Returns an :class:`EngineConfig` ready to be passed to
    :meth:`MonitoringService.from_config`.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    engine = dict(raw.get("engine") or {})
    if "log_level" in engine:
        engine["log_level"] = str(engine["log_level"]).upper()

    # Top-level sections take precedence over the same settings under engine.
    if raw.get("store"):
        engine["store_config"] = raw["store"]
    if raw.get("identity"):
        engine["identity_config"] = raw["identity"]

    config = EngineConfig(**engine)

    logger.info(
        "Loaded config: store=%s, identity=%s, amplitude=%.2f",
        config.store_config.get("type"),
        config.identity_config.get("type", "static"),
        config.amplitude,
    )
    return config
