"""Health snapshot builder — raw bus payload -> Unit.

Reads the dict published on 'units:health' and structures it into a Unit
with all 12 indicators present. Integrity problems are logged, never raised.
"""
from __future__ import annotations

import logging

from alarms.aggregator import check_indicators, normalize_indicators
from alarms.models import Unit

logger = logging.getLogger("statcom.alarms.snapshot")


def build_unit(payload: dict) -> Unit | None:
    """Build a Unit from a health payload; None if the payload has no unit id."""
    unit_id = payload.get("unit_id")
    if unit_id is None or unit_id == "":
        return None
    unit_id = str(unit_id)

    raw = payload.get("indicators")
    if not isinstance(raw, dict):
        logger.warning("Unit %s: payload without indicator map, all indicators OK", unit_id)
        raw = {}

    issues = check_indicators(raw)
    if issues:
        logger.warning(
            "Unit %s: %d indicator integrity issues: %s",
            unit_id, len(issues),
            ", ".join(f"{i.indicator}({i.kind})" for i in issues),
        )

    return Unit(
        id=unit_id,
        name=str(payload.get("name") or unit_id),
        indicators=normalize_indicators(raw, quiet=True),
    )


def unit_to_payload(unit: Unit, online: bool = True) -> dict:
    """Inverse of build_unit — the dict published on the health bus."""
    return {
        "unit_id": unit.id,
        "name": unit.name,
        "online": online,
        "indicators": {ind.value: level.value for ind, level in unit.indicators.items()},
    }
