"""
REST endpoints for unit health snapshots.

GET  /api/units              → all units with aggregate status
GET  /api/units/{unit_id}    → one unit
POST /api/units/validate     → compare displayed statuses with a recompute
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from alarms.aggregator import StatusDiscrepancy, unit_status, validate_display
from alarms.models import Unit
from alarms.monitor import AlarmMonitor
from alarms.router import get_monitor

router = APIRouter(prefix="/api/units", tags=["units"])


class UnitOut(BaseModel):
    id: str
    name: str
    status: str
    indicators: dict[str, str]


def _unit_out(unit: Unit) -> UnitOut:
    return UnitOut(
        id=unit.id,
        name=unit.name,
        status=unit_status(unit).value,
        indicators={ind.value: level.value for ind, level in unit.indicators.items()},
    )


@router.get("", response_model=list[UnitOut])
async def list_units(monitor: AlarmMonitor = Depends(get_monitor)) -> list[UnitOut]:
    """Latest snapshot of every unit, sorted by id."""
    units = monitor.units
    return [_unit_out(units[uid]) for uid in sorted(units)]


@router.get("/{unit_id}", response_model=UnitOut)
async def get_unit(unit_id: str, monitor: AlarmMonitor = Depends(get_monitor)) -> UnitOut:
    unit = monitor.units.get(unit_id)
    if unit is None:
        raise HTTPException(status_code=404, detail="Unit not found")
    return _unit_out(unit)


@router.post("/validate", response_model=list[StatusDiscrepancy])
async def validate_units(
    displayed: dict[str, str],
    monitor: AlarmMonitor = Depends(get_monitor),
) -> list[StatusDiscrepancy]:
    """Body: {unit_id: displayed status}. Empty list means consistent."""
    return validate_display(displayed, monitor.units)
