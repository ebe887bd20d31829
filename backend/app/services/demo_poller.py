"""
Demo Poller — emulates 6 STATCOM power modules.

Random-walks the 12 health indicators of each module and publishes them to
Redis in the same format a real telemetry source would use, so the alarm
monitor cannot tell the difference.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random

from redis.asyncio import Redis

from config import settings
from alarms.models import ALL_INDICATORS, StatusLevel
from alarms.monitor import HEALTH_CHANNEL, health_key

logger = logging.getLogger("statcom.demo_poller")

DEMO_UNITS = [
    {"unit_id": "M01", "name": "Module 1 (Phase A)"},
    {"unit_id": "M02", "name": "Module 2 (Phase A)"},
    {"unit_id": "M03", "name": "Module 3 (Phase B)"},
    {"unit_id": "M04", "name": "Module 4 (Phase B)"},
    {"unit_id": "M05", "name": "Module 5 (Phase C)"},
    {"unit_id": "M06", "name": "Module 6 (Phase C)"},
]

# Per-tick probability that an OK indicator starts a fault, and that a
# faulted indicator recovers
FAULT_PROBABILITY = 0.004
RECOVER_PROBABILITY = 0.05

FAULT_WEIGHTS = [
    (StatusLevel.DEGRADED, 0.5),
    (StatusLevel.WARNING, 0.35),
    (StatusLevel.CRITICAL, 0.15),
]


class DemoPoller:
    """Emulates module health telemetry. Generates indicator maps and pushes to Redis."""

    def __init__(self, redis: Redis, rng: random.Random | None = None):
        self.redis = redis
        self.rng = rng or random.Random(settings.DEMO_RANDOM_SEED)
        self._running = False
        self.state: dict[str, dict[str, str]] = {
            cfg["unit_id"]: {ind.value: StatusLevel.OK.value for ind in ALL_INDICATORS}
            for cfg in DEMO_UNITS
        }

    async def start(self) -> None:
        self._running = True
        logger.info("DemoPoller started — emulating %d units", len(DEMO_UNITS))

        while self._running:
            for cfg in DEMO_UNITS:
                await self._publish(self.next_payload(cfg))

            await asyncio.sleep(settings.POLL_INTERVAL)

    async def stop(self) -> None:
        self._running = False
        logger.info("DemoPoller stopped")

    async def _publish(self, payload: dict) -> None:
        json_str = json.dumps(payload)
        await self.redis.set(health_key(payload["unit_id"]), json_str)
        await self.redis.publish(HEALTH_CHANNEL, json_str)

    # ------------------------------------------------------------------
    def _pick_fault(self) -> StatusLevel:
        levels, weights = zip(*FAULT_WEIGHTS)
        return self.rng.choices(levels, weights=weights)[0]

    def next_payload(self, unit_cfg: dict) -> dict:
        indicators = self.state[unit_cfg["unit_id"]]
        for name, label in indicators.items():
            if label == StatusLevel.OK.value:
                if self.rng.random() < FAULT_PROBABILITY:
                    indicators[name] = self._pick_fault().value
            elif self.rng.random() < RECOVER_PROBABILITY:
                indicators[name] = StatusLevel.OK.value

        return {
            "unit_id": unit_cfg["unit_id"],
            "name": unit_cfg["name"],
            "online": True,
            "indicators": dict(indicators),
        }
