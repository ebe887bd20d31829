"""CSV export of alarm views."""
from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from datetime import datetime

from alarms.definitions import get_message
from alarms.durations import duration_ms, elapsed_since, ensure_aware, format_duration
from alarms.generator import utc_now
from alarms.models import AlarmRecord

CSV_MEDIA_TYPE = "text/csv"
CSV_HEADER = [
    "Severity", "Module", "Status", "Triggered Time",
    "Cleared Time", "Duration", "Message",
]


def format_timestamp(dt: datetime) -> str:
    """Local time, 'YYYY-MM-DD HH:MM:SS'."""
    return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _active_row(rec: AlarmRecord, now: datetime) -> list[str]:
    return [
        rec.severity.value,
        rec.unit_id,
        "Active",
        format_timestamp(rec.activated_at),
        "",
        elapsed_since(rec.activated_at, now),
        get_message(rec.indicator),
    ]


def _cleared_row(rec: AlarmRecord) -> list[str]:
    duration = rec.duration or format_duration(duration_ms(rec.activated_at, rec.cleared_at))
    return [
        rec.severity.value,
        rec.unit_id,
        "Cleared",
        format_timestamp(rec.activated_at),
        format_timestamp(rec.cleared_at),
        duration,
        get_message(rec.indicator),
    ]


def to_csv(
    active: Iterable[AlarmRecord],
    cleared: Iterable[AlarmRecord],
    now: datetime | None = None,
) -> str:
    """Header plus one row per record; zero records yields a header-only document."""
    now = ensure_aware(now or utc_now())
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for rec in active:
        writer.writerow(_active_row(rec, now))
    for rec in cleared:
        writer.writerow(_cleared_row(rec))
    return output.getvalue()


def export_filename(system_name: str, now: datetime | None = None) -> str:
    """'<SystemName>_Alarms_YYYY-MM-DD_HH-MM-SS.csv' in local time."""
    now = ensure_aware(now or utc_now())
    stamp = now.astimezone().strftime("%Y-%m-%d_%H-%M-%S")
    return f"{system_name}_Alarms_{stamp}.csv"
