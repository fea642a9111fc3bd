#!/usr/bin/env python3
"""Dashboard session example -- drive the service the way a polling
dashboard would: read the fleet twice, add a sensor, acknowledge alerts.

State is written to ``./output/envmon-state`` so a second run picks up
where the first one stopped.

Usage::

    python examples/scenarios/dashboard_session_example.py
    python examples/scenarios/dashboard_session_example.py --fresh   # wipe state first
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import shutil
from pathlib import Path


async def run(config_path: Path) -> None:
    from envmon import MonitoringService, load_yaml_config
    from envmon.exceptions import NotFound, Unauthorized

    cfg = load_yaml_config(config_path)

    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )

    async with MonitoringService.from_config(cfg) as service:
        # --- Two polls: every read moves the readings ---
        for poll in (1, 2):
            print(f"\n--- Poll {poll} ---")
            for sensor in await service.list_sensors():
                print(f"  [{sensor.id:>13}] {sensor.name:<24} {sensor.value:>8.2f} {sensor.unit:<5} {sensor.status}")

        # --- Mutations need a token ---
        try:
            await service.add_sensor(None, {"name": "X", "type": "gas", "location": "Nowhere"})
        except Unauthorized as exc:
            print(f"\n  Anonymous add rejected: {exc}")

        sensor = await service.add_sensor(
            "demo-token",
            {"name": "Humidity Probe G1", "type": "humidity", "location": "Tunnel A - Section 3", "unit": "%", "value": 61.0},
        )
        print(f"  Added sensor {sensor.id} ({sensor.name})")

        # --- Alerts ---
        print("\n--- Alerts ---")
        for alert in await service.list_alerts():
            mark = "x" if alert.acknowledged else " "
            print(f"  [{mark}] {alert.id:>3} {alert.severity:<8} {alert.message}")

        alert = await service.acknowledge_alert("demo-token", "1")
        print(f"\n  Alert {alert.id} acknowledged by {alert.acknowledged_by} at {alert.acknowledged_at:%H:%M:%S}")

        try:
            await service.acknowledge_alert("demo-token", "999")
        except NotFound as exc:
            print(f"  {exc}")

        summary = await service.summary()
        print(f"\n  Summary: {summary.to_dict()}")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--fresh", action="store_true", help="delete stored state before running")
    args = parser.parse_args()

    if args.fresh and Path("./output/envmon-state").exists():
        shutil.rmtree("./output/envmon-state")

    config_path = Path(__file__).parent.parent / "configs" / "envmon.yaml"
    asyncio.run(run(config_path))


if __name__ == "__main__":
    main()
