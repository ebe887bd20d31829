"""Alarm generator — turns successive health snapshots into alarm records.

Per (unit, indicator) the previous level is remembered:
  OK -> non-OK        : activate a record at `now`
  non-OK -> OK        : clear the open record, duration fixed at clearing
  non-OK -> other     : clear the open record, activate one at the new severity

The first snapshot of a unit compares against OK, so every non-OK indicator
seen at that point yields one active record. Each observe() call publishes
a new immutable AlarmSet; previously returned sets are never touched.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone

from alarms.aggregator import normalize_indicators
from alarms.durations import duration_ms, ensure_aware, format_duration
from alarms.models import (
    AlarmRecord,
    AlarmSet,
    GeneratorConfig,
    Indicator,
    StatusLevel,
    Unit,
)

logger = logging.getLogger("statcom.alarms.generator")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def active_sort_key(rec: AlarmRecord):
    return (rec.severity.priority, rec.activated_at)


def cleared_sort_key(rec: AlarmRecord):
    return rec.cleared_at


def sort_active(records: Iterable[AlarmRecord]) -> tuple[AlarmRecord, ...]:
    """Most severe first, then most recent activation first."""
    return tuple(sorted(records, key=active_sort_key, reverse=True))


def sort_cleared(records: Iterable[AlarmRecord]) -> tuple[AlarmRecord, ...]:
    """Most recently cleared first."""
    return tuple(sorted(records, key=cleared_sort_key, reverse=True))


def indicator_map(value) -> Mapping:
    return value.indicators if isinstance(value, Unit) else value


def clear_record(rec: AlarmRecord, at: datetime) -> AlarmRecord:
    at = max(at, rec.activated_at)
    return rec.cleared(at, format_duration(duration_ms(rec.activated_at, at)))


class AlarmGenerator:
    """Owns the canonical active/cleared ledger for the process lifetime."""

    def __init__(
        self,
        clock: Clock | None = None,
        config: GeneratorConfig | None = None,
    ):
        self.clock = clock or utc_now
        self.config = config or GeneratorConfig()
        # (unit_id, indicator) -> last observed level
        self._levels: dict[tuple[str, Indicator], StatusLevel] = {}
        # (unit_id, indicator) -> open record
        self._open: dict[tuple[str, Indicator], AlarmRecord] = {}
        self._cleared: tuple[AlarmRecord, ...] = ()
        self._snapshot = AlarmSet()
        self.last_transitions = 0

    @property
    def snapshot(self) -> AlarmSet:
        return self._snapshot

    def observe(self, units: Mapping, now: datetime | None = None) -> AlarmSet:
        """Process one health snapshot {unit_id: Unit | indicator map}."""
        now = ensure_aware(now or self.clock())
        activated: list[AlarmRecord] = []
        cleared: list[AlarmRecord] = []

        for unit_id, value in units.items():
            levels = normalize_indicators(indicator_map(value))
            for ind, level in levels.items():
                key = (unit_id, ind)
                prev = self._levels.get(key, StatusLevel.OK)
                self._levels[key] = level
                if level is prev:
                    continue

                if prev is not StatusLevel.OK:
                    open_rec = self._open.pop(key, None)
                    if open_rec is not None:
                        cleared.append(clear_record(open_rec, now))
                        logger.info(
                            "ALARM OFF: unit=%s indicator=%s after %s",
                            unit_id, ind.value, cleared[-1].duration,
                        )
                if level is not StatusLevel.OK:
                    rec = AlarmRecord(
                        unit_id=unit_id,
                        indicator=ind,
                        severity=level,
                        activated_at=now,
                    )
                    self._open[key] = rec
                    activated.append(rec)
                    logger.info(
                        "ALARM ON: unit=%s indicator=%s severity=%s",
                        unit_id, ind.value, level.value,
                    )

        self.last_transitions = len(activated) + len(cleared)
        if cleared:
            self._cleared = self._trim(self._cleared + tuple(cleared))
        self._snapshot = AlarmSet(
            active=sort_active(self._open.values()),
            cleared=self._cleared,
        )
        return self._snapshot

    def seed(self, records: Iterable[AlarmRecord]) -> AlarmSet:
        """Merge externally fabricated cleared records (demo fixtures) into the ledger."""
        extra = tuple(r for r in records if not r.is_active)
        if extra:
            self._cleared = self._trim(self._cleared + extra)
            self._snapshot = AlarmSet(active=self._snapshot.active, cleared=self._cleared)
            logger.info("Seeded %d cleared alarm records", len(extra))
        return self._snapshot

    def _trim(self, records: tuple[AlarmRecord, ...]) -> tuple[AlarmRecord, ...]:
        return sort_cleared(records)[: self.config.history_limit]


def generate(
    units: Mapping,
    now: datetime,
    config: GeneratorConfig | None = None,
) -> AlarmSet:
    """One-shot generation: one active record per non-OK indicator at `now`."""
    return AlarmGenerator(config=config).observe(units, now)
