"""Alarm Monitor — subscribes to Redis, feeds health snapshots to the generator.

Listens to 'units:health' channel. For each payload:
1. Builds a Unit (all 12 indicators, integrity problems logged)
2. Replaces the unit in the current units map
3. Runs AlarmGenerator.observe() for that unit (transition detection)
4. On any transition: publishes counts on 'alarms:updates'

All exceptions are caught internally — never propagates errors outward.
"""
from __future__ import annotations

import asyncio
import json
import logging

from redis.asyncio import Redis

from alarms.generator import AlarmGenerator
from alarms.models import AlarmSet, Unit
from alarms.snapshot import build_unit

logger = logging.getLogger("statcom.alarms.monitor")

HEALTH_CHANNEL = "units:health"
ALARMS_CHANNEL = "alarms:updates"
HEALTH_KEY_PATTERN = "unit:*:health"


def health_key(unit_id: str) -> str:
    return f"unit:{unit_id}:health"


class AlarmMonitor:
    """Keeps the latest unit snapshot and the alarm ledger in memory."""

    def __init__(self, redis: Redis, generator: AlarmGenerator | None = None):
        self.redis = redis
        self.generator = generator or AlarmGenerator()
        self._running = False
        # Replaced wholesale on every update; readers may keep old references
        self.units: dict[str, Unit] = {}

    @property
    def alarms(self) -> AlarmSet:
        return self.generator.snapshot

    async def start(self) -> None:
        self._running = True
        await self._load_units()
        logger.info("AlarmMonitor started (loaded %d unit states)", len(self.units))
        await self._subscribe()

    async def stop(self) -> None:
        self._running = False
        logger.info("AlarmMonitor stopped")

    # ------------------------------------------------------------------
    async def _load_units(self) -> None:
        """Rebuild the current snapshot from the last payload stored per unit."""
        try:
            cursor = 0
            while True:
                cursor, keys = await self.redis.scan(
                    cursor=cursor, match=HEALTH_KEY_PATTERN, count=100,
                )
                for key in keys:
                    raw = await self.redis.get(key)
                    if raw:
                        await self._handle_raw(raw)
                if cursor == 0:
                    break
        except Exception as exc:
            logger.warning("AlarmMonitor failed to load unit states: %s", exc)

    async def _subscribe(self) -> None:
        while self._running:
            pubsub = self.redis.pubsub()
            try:
                await pubsub.subscribe(HEALTH_CHANNEL)
                async for msg in pubsub.listen():
                    if not self._running:
                        break
                    if msg["type"] != "message":
                        continue
                    await self._handle_raw(msg["data"])
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.error("AlarmMonitor subscribe error: %s", exc)
                await asyncio.sleep(2)
            finally:
                try:
                    await pubsub.unsubscribe(HEALTH_CHANNEL)
                    await pubsub.close()
                except Exception:
                    pass

    async def _handle_raw(self, raw) -> None:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            payload = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.debug("Skipping malformed health payload")
            return
        if not isinstance(payload, dict):
            return
        # Process in try/except, never propagate errors
        try:
            await self._process(payload)
        except Exception as exc:
            logger.error("AlarmMonitor process error: %s", exc)

    async def _process(self, payload: dict) -> None:
        """Process a single health payload — one generation cycle."""
        if not payload.get("online", True):
            return
        unit = build_unit(payload)
        if unit is None:
            return

        self.units = {**self.units, unit.id: unit}
        alarms = self.generator.observe({unit.id: unit})

        if self.generator.last_transitions:
            summary = {
                "unit_id": unit.id,
                "active": len(alarms.active),
                "cleared": len(alarms.cleared),
                "transitions": self.generator.last_transitions,
            }
            await self.redis.publish(ALARMS_CHANNEL, json.dumps(summary))
