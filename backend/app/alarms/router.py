"""Alarms API — REST endpoints for the alarm ledger.

GET  /api/alarms               — filtered active + cleared view
GET  /api/alarms/export        — same view as CSV download
GET  /api/alarms/definitions   — indicator -> message lookup
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel

from config import settings
from alarms.definitions import INDICATOR_DEFINITIONS, get_message
from alarms.durations import elapsed_since
from alarms.exporter import CSV_MEDIA_TYPE, export_filename, to_csv
from alarms.filters import filter_alarms
from alarms.models import AlarmRecord, FilterCriteria, SeverityFilter, TimeRange
from alarms.monitor import AlarmMonitor

router = APIRouter(prefix="/api/alarms", tags=["alarms"])
logger = logging.getLogger("statcom.alarms.router")


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class AlarmOut(BaseModel):
    unit_id: str
    unit_name: str
    indicator: str
    message: str
    severity: str
    activated_at: datetime
    cleared_at: Optional[datetime] = None
    duration: str
    is_active: bool


class AlarmViewOut(BaseModel):
    active: list[AlarmOut]
    cleared: list[AlarmOut]
    active_count: int
    cleared_count: int
    generated_at: datetime


class IndicatorDefinitionOut(BaseModel):
    indicator: str
    label: str
    message: str


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_monitor(request: Request) -> AlarmMonitor:
    return request.app.state.alarm_monitor


def get_criteria(
    severity: SeverityFilter = Query("ALL"),
    time_range: TimeRange = Query("ALL"),
    module: str = Query("ALL"),
) -> FilterCriteria:
    return FilterCriteria(severity=severity, time_range=time_range, module=module)


def _to_out(rec: AlarmRecord, monitor: AlarmMonitor, now: datetime) -> AlarmOut:
    unit = monitor.units.get(rec.unit_id)
    return AlarmOut(
        unit_id=rec.unit_id,
        unit_name=unit.name if unit else rec.unit_id,
        indicator=rec.indicator.value,
        message=get_message(rec.indicator),
        severity=rec.severity.value,
        activated_at=rec.activated_at,
        cleared_at=rec.cleared_at,
        duration=rec.duration if rec.duration else elapsed_since(rec.activated_at, now),
        is_active=rec.is_active,
    )


# ---------------------------------------------------------------------------
# ENDPOINTS
# ---------------------------------------------------------------------------

@router.get("", response_model=AlarmViewOut)
async def list_alarms(
    criteria: FilterCriteria = Depends(get_criteria),
    monitor: AlarmMonitor = Depends(get_monitor),
) -> AlarmViewOut:
    """Filtered view of the current alarm ledger."""
    now = monitor.generator.clock()
    view = filter_alarms(monitor.alarms, criteria, now)
    return AlarmViewOut(
        active=[_to_out(r, monitor, now) for r in view.active],
        cleared=[_to_out(r, monitor, now) for r in view.cleared],
        active_count=len(view.active),
        cleared_count=len(view.cleared),
        generated_at=now,
    )


@router.get("/export")
async def export_alarms(
    criteria: FilterCriteria = Depends(get_criteria),
    monitor: AlarmMonitor = Depends(get_monitor),
) -> Response:
    """Download the filtered view as CSV (header-only when nothing matches)."""
    now = monitor.generator.clock()
    view = filter_alarms(monitor.alarms, criteria, now)
    filename = export_filename(settings.SYSTEM_NAME, now)
    logger.info(
        "CSV export: %d active, %d cleared -> %s",
        len(view.active), len(view.cleared), filename,
    )
    return Response(
        content=to_csv(view.active, view.cleared, now),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/definitions", response_model=list[IndicatorDefinitionOut])
async def get_definitions() -> list[IndicatorDefinitionOut]:
    """Indicator lookup table for the frontend."""
    return [
        IndicatorDefinitionOut(indicator=name, label=defn["label"], message=defn["message"])
        for name, defn in INDICATOR_DEFINITIONS.items()
    ]
