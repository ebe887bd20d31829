import csv
import io
from datetime import datetime, timedelta

from alarms.definitions import INDICATOR_DEFINITIONS, get_label, get_message
from alarms.exporter import CSV_HEADER, export_filename, format_timestamp, to_csv
from alarms.models import AlarmRecord, Indicator, StatusLevel

HEADER_LINE = "Severity,Module,Status,Triggered Time,Cleared Time,Duration,Message"


def _rows(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text)))


def test_empty_export_is_header_only(now):
    text = to_csv([], [], now)
    assert text == HEADER_LINE + "\n"
    assert ",".join(CSV_HEADER) == HEADER_LINE


def test_header_plus_one_line_per_record(make_record, now):
    active = [make_record(unit_id=f"M0{i}") for i in range(1, 4)]
    cleared = [make_record(cleared_ago=timedelta(minutes=1), duration="29m") for _ in range(2)]
    lines = to_csv(active, cleared, now).splitlines()
    assert len(lines) == 1 + 5
    assert lines[0] == HEADER_LINE


def test_comma_in_module_id_is_quoted(make_record, now):
    text = to_csv([make_record(unit_id="M,01")], [], now)
    assert ',"M,01",' in text.splitlines()[1]


def test_quotes_and_line_breaks_escaped(make_record, now):
    text = to_csv([make_record(unit_id='M"7'), make_record(unit_id="M\n8")], [], now)
    assert '"M""7"' in text
    rows = _rows(text)
    assert len(rows) == 3
    assert rows[1][1] == 'M"7'
    assert rows[2][1] == "M\n8"


def test_active_row(make_record, now):
    rec = make_record(severity=StatusLevel.CRITICAL, activated_ago=timedelta(hours=1, minutes=5))
    row = _rows(to_csv([rec], [], now))[1]
    assert row == [
        "CRITICAL",
        "M01",
        "Active",
        format_timestamp(rec.activated_at),
        "",
        "1h 5m",
        "IGBT module over-temperature",
    ]


def test_cleared_row_uses_stored_values(make_record, now):
    rec = make_record(
        indicator=Indicator.FAN,
        activated_ago=timedelta(minutes=30),
        cleared_ago=timedelta(minutes=25),
        duration="5m",
    )
    row = _rows(to_csv([], [rec], now + timedelta(days=3)))[1]
    assert row[2] == "Cleared"
    assert row[4] == format_timestamp(rec.cleared_at)
    assert row[5] == "5m"
    assert row[6] == "Cabinet fan failure"


def test_cleared_row_without_duration_is_computed(now):
    rec = AlarmRecord(
        unit_id="M01",
        indicator=Indicator.GRID_SYNC,
        severity=StatusLevel.WARNING,
        activated_at=now - timedelta(minutes=10),
        cleared_at=now,
    )
    assert _rows(to_csv([], [rec], now))[1][5] == "10m"


def test_timestamp_format_local_time():
    local = datetime(2026, 1, 5, 9, 3, 7).astimezone()
    assert format_timestamp(local) == "2026-01-05 09:03:07"


def test_export_filename():
    local = datetime(2026, 1, 5, 14, 30, 9, 123456).astimezone()
    assert export_filename("STATCOM", local) == "STATCOM_Alarms_2026-01-05_14-30-09.csv"


def test_message_table_covers_every_indicator():
    assert set(INDICATOR_DEFINITIONS) == {ind.value for ind in Indicator}
    assert get_label(Indicator.OVERTEMP) == "Overtemp"


def test_unknown_indicator_falls_back_to_raw_name():
    assert get_message("vibration") == "vibration"
    assert get_label("vibration") == "vibration"
