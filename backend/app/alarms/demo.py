"""Demo alarm fixtures — randomized alarm history for the dashboard.

Not used for real telemetry. Gives the filter/export layer non-trivial data
when DEMO_MODE is on. All randomness goes through the `rng` argument so a
seeded random.Random reproduces the same fixture.
"""
from __future__ import annotations

import random
from collections.abc import Mapping
from datetime import datetime, timedelta

from alarms.aggregator import normalize_indicators
from alarms.durations import ensure_aware
from alarms.generator import indicator_map, clear_record, sort_active, sort_cleared
from alarms.models import ALL_INDICATORS, AlarmRecord, AlarmSet, GeneratorConfig, StatusLevel

NON_OK = (StatusLevel.DEGRADED, StatusLevel.WARNING, StatusLevel.CRITICAL)


def _random_offset(rng: random.Random, hours: float) -> timedelta:
    return timedelta(seconds=rng.uniform(0, hours * 3600))


def synthesize_alarms(
    units: Mapping,
    now: datetime,
    config: GeneratorConfig | None = None,
    rng: random.Random | None = None,
) -> AlarmSet:
    """One candidate per non-OK indicator with a fabricated lifecycle.

    Activation falls inside the look-back window; with clear_probability the
    record gets a clearing time inside the follow-on window. A clearing time
    still in the future leaves the record active.

    Fixture builder for tests and offline dashboards. The live service never
    calls it: DEMO_MODE feeds the ledger through AlarmGenerator.observe() and
    pre-fills history with seed_history() only.
    """
    config = config or GeneratorConfig()
    rng = rng or random.Random()
    now = ensure_aware(now)
    active: list[AlarmRecord] = []
    cleared: list[AlarmRecord] = []

    for unit_id, value in units.items():
        for ind, level in normalize_indicators(indicator_map(value)).items():
            if level is StatusLevel.OK:
                continue
            activated_at = now - _random_offset(rng, config.lookback_hours)
            rec = AlarmRecord(
                unit_id=unit_id, indicator=ind, severity=level, activated_at=activated_at,
            )
            if rng.random() < config.clear_probability:
                cleared_at = activated_at + _random_offset(rng, config.clear_window_hours)
                if cleared_at <= now:
                    cleared.append(clear_record(rec, cleared_at))
                    continue
            active.append(rec)

    return AlarmSet(active=sort_active(active), cleared=sort_cleared(cleared))


def seed_history(
    unit_ids: list[str],
    now: datetime,
    config: GeneratorConfig | None = None,
    rng: random.Random | None = None,
) -> tuple[AlarmRecord, ...]:
    """Extra cleared records spread across the seed window (default 7 days)."""
    config = config or GeneratorConfig()
    rng = rng or random.Random()
    now = ensure_aware(now)
    if not unit_ids:
        return ()

    count = rng.randint(config.seed_count_min, config.seed_count_max)
    window_hours = config.seed_window_days * 24
    records: list[AlarmRecord] = []
    for _ in range(count):
        activated_at = now - _random_offset(rng, window_hours)
        cleared_at = min(now, activated_at + _random_offset(rng, config.clear_window_hours))
        rec = AlarmRecord(
            unit_id=rng.choice(unit_ids),
            indicator=rng.choice(ALL_INDICATORS),
            severity=rng.choice(NON_OK),
            activated_at=activated_at,
        )
        records.append(clear_record(rec, cleared_at))
    return sort_cleared(records)
