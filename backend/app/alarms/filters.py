"""Alarm filtering — narrowed views over an AlarmSet.

filter_alarms() never mutates its input and never reorders: the result keeps
the ledger's ordering and is always a subset of it.
"""
from __future__ import annotations

from datetime import datetime, timedelta

from alarms.durations import ensure_aware
from alarms.models import AlarmRecord, AlarmSet, FilterCriteria

TIME_RANGE_HOURS: dict[str, int | None] = {
    "1h": 1,
    "6h": 6,
    "24h": 24,
    "7d": 168,
    "ALL": None,
}


def cutoff_for(time_range: str, now: datetime) -> datetime | None:
    hours = TIME_RANGE_HOURS[time_range]
    if hours is None:
        return None
    return ensure_aware(now) - timedelta(hours=hours)


def _matches(rec: AlarmRecord, criteria: FilterCriteria) -> bool:
    if criteria.severity != "ALL" and rec.severity.value != criteria.severity:
        return False
    if criteria.module != "ALL" and rec.unit_id != criteria.module:
        return False
    return True


def filter_alarms(
    alarm_set: AlarmSet,
    criteria: FilterCriteria,
    now: datetime,
) -> AlarmSet:
    """Apply severity, time-range and module predicates (logical AND).

    Active records are windowed on activated_at, cleared ones on cleared_at.
    """
    cutoff = cutoff_for(criteria.time_range, now)

    active = tuple(
        rec for rec in alarm_set.active
        if _matches(rec, criteria) and (cutoff is None or rec.activated_at >= cutoff)
    )
    cleared = tuple(
        rec for rec in alarm_set.cleared
        if _matches(rec, criteria) and (cutoff is None or rec.cleared_at >= cutoff)
    )
    return AlarmSet(active=active, cleared=cleared)
