"""Alarm ledger domain types.

Everything here is immutable: a generation cycle produces a new AlarmSet,
clearing an alarm produces a new AlarmRecord.
"""
from __future__ import annotations

import enum
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from alarms.durations import ensure_aware


class StatusLevel(str, enum.Enum):
    OK = "OK"
    DEGRADED = "DEGRADED"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"

    @property
    def priority(self) -> int:
        return _PRIORITY[self]


_PRIORITY = {
    StatusLevel.OK: 0,
    StatusLevel.DEGRADED: 1,
    StatusLevel.WARNING: 2,
    StatusLevel.CRITICAL: 3,
}


class Indicator(str, enum.Enum):
    OVERTEMP = "overtemp"
    OVERCURRENT = "overcurrent"
    DC_OVERVOLTAGE = "dc_overvoltage"
    DC_UNDERVOLTAGE = "dc_undervoltage"
    COOLING = "cooling"
    GATE_DRIVER = "gate_driver"
    COMMUNICATION = "communication"
    GRID_SYNC = "grid_sync"
    HARMONICS = "harmonics"
    CAPACITOR = "capacitor"
    FAN = "fan"
    AUX_POWER = "aux_power"


ALL_INDICATORS: tuple[Indicator, ...] = tuple(Indicator)

SeverityFilter = Literal["ALL", "DEGRADED", "WARNING", "CRITICAL"]
TimeRange = Literal["1h", "6h", "24h", "7d", "ALL"]


class Unit(BaseModel):
    """Monitored module. Aggregate status is derived, never stored."""

    id: str
    name: str
    indicators: dict[Indicator, StatusLevel]

    model_config = {"frozen": True}


class AlarmRecord(BaseModel):
    unit_id: str
    indicator: Indicator
    severity: StatusLevel
    activated_at: datetime
    cleared_at: datetime | None = None
    duration: str | None = None

    model_config = {"frozen": True}

    @field_validator("activated_at", "cleared_at")
    @classmethod
    def _aware(cls, value: datetime | None) -> datetime | None:
        # one convention across the ledger: every stored timestamp is tz-aware
        return ensure_aware(value) if value is not None else None

    @model_validator(mode="after")
    def _check_lifecycle(self) -> "AlarmRecord":
        if self.cleared_at is not None and self.cleared_at < self.activated_at:
            raise ValueError("cleared_at must not precede activated_at")
        return self

    @property
    def is_active(self) -> bool:
        return self.cleared_at is None

    def cleared(self, at: datetime, duration: str) -> "AlarmRecord":
        """Return the cleared counterpart of this record."""
        return self.model_copy(update={"cleared_at": ensure_aware(at), "duration": duration})


class AlarmSet(BaseModel):
    active: tuple[AlarmRecord, ...] = ()
    cleared: tuple[AlarmRecord, ...] = ()

    model_config = {"frozen": True}

    def __len__(self) -> int:
        return len(self.active) + len(self.cleared)


class FilterCriteria(BaseModel):
    severity: SeverityFilter = "ALL"
    time_range: TimeRange = "ALL"
    module: str = "ALL"

    model_config = {"frozen": True}


class GeneratorConfig(BaseModel):
    lookback_hours: float = Field(6.0, gt=0)
    clear_probability: float = Field(0.4, ge=0, le=1)
    clear_window_hours: float = Field(4.0, gt=0)
    seed_count_min: int = Field(20, ge=0)
    seed_count_max: int = Field(30, ge=0)
    seed_window_days: float = Field(7.0, gt=0)
    history_limit: int = Field(5000, gt=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_seed_range(self) -> "GeneratorConfig":
        if self.seed_count_max < self.seed_count_min:
            raise ValueError("seed_count_max must be >= seed_count_min")
        return self

    @classmethod
    def from_settings(cls, s) -> "GeneratorConfig":
        return cls(
            lookback_hours=s.ALARM_LOOKBACK_HOURS,
            clear_probability=s.ALARM_CLEAR_PROBABILITY,
            clear_window_hours=s.ALARM_CLEAR_WINDOW_HOURS,
            seed_count_min=s.ALARM_SEED_MIN,
            seed_count_max=s.ALARM_SEED_MAX,
            seed_window_days=s.ALARM_SEED_WINDOW_DAYS,
            history_limit=s.ALARM_HISTORY_LIMIT,
        )
