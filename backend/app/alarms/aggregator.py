"""Status aggregation — worst-case severity per unit.

aggregate() is the only place a unit's overall status is computed. Tile
coloring, the units API and alarm derivation all go through it, and
validate_display() checks any rendered value against a fresh recompute.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Optional

from pydantic import BaseModel

from alarms.models import ALL_INDICATORS, Indicator, StatusLevel, Unit

logger = logging.getLogger("statcom.alarms.aggregator")

# Alternate label set used by some module firmware
STATUS_ALIASES = {
    "CAUTION": StatusLevel.DEGRADED,
    "FAILED": StatusLevel.CRITICAL,
}

_MISSING = object()


class IntegrityIssue(BaseModel):
    indicator: str
    kind: str  # missing / unknown_indicator / unknown_status
    detail: str = ""


class StatusDiscrepancy(BaseModel):
    unit_id: str
    displayed: str
    expected: Optional[str] = None
    reason: str  # mismatch / unknown_unit


def _lookup(token) -> StatusLevel | None:
    if isinstance(token, StatusLevel):
        return token
    if isinstance(token, str):
        label = token.strip().upper()
        if label in StatusLevel.__members__:
            return StatusLevel[label]
        return STATUS_ALIASES.get(label)
    return None


def parse_status(token) -> StatusLevel:
    """Parse a severity token. Unknown or garbled tokens map to OK with a warning."""
    level = _lookup(token)
    if level is None:
        logger.warning("Unknown status token %r treated as OK", token)
        return StatusLevel.OK
    return level


def check_indicators(indicators: Mapping) -> list[IntegrityIssue]:
    """List data-integrity problems in a raw indicator map (never raises)."""
    issues: list[IntegrityIssue] = []
    known = {ind.value for ind in ALL_INDICATORS}

    for ind in ALL_INDICATORS:
        if ind not in indicators:
            issues.append(IntegrityIssue(indicator=ind.value, kind="missing"))
    for key, token in indicators.items():
        name = key.value if isinstance(key, Indicator) else str(key)
        if name not in known:
            issues.append(IntegrityIssue(indicator=name, kind="unknown_indicator"))
        elif _lookup(token) is None:
            issues.append(IntegrityIssue(indicator=name, kind="unknown_status", detail=repr(token)))
    return issues


def aggregate(indicators: Mapping) -> StatusLevel:
    """Worst-case severity across the 12 indicators.

    Missing indicators count as OK and are logged as an integrity warning.
    """
    worst = StatusLevel.OK
    missing = []
    for ind in ALL_INDICATORS:
        token = indicators.get(ind, _MISSING)
        if token is _MISSING:
            missing.append(ind.value)
            continue
        level = parse_status(token)
        if level.priority > worst.priority:
            worst = level

    if missing:
        logger.warning("Indicator map missing %d keys (treated as OK): %s",
                       len(missing), ", ".join(missing))
    return worst


def unit_status(unit: Unit) -> StatusLevel:
    return aggregate(unit.indicators)


def normalize_indicators(indicators: Mapping, quiet: bool = False) -> dict[Indicator, StatusLevel]:
    """Full 12-key indicator map; missing or unknown values become OK.

    quiet=True skips the per-token warning when the caller already reported
    the map through check_indicators().
    """
    if quiet:
        return {
            ind: _lookup(indicators.get(ind, StatusLevel.OK)) or StatusLevel.OK
            for ind in ALL_INDICATORS
        }
    return {
        ind: parse_status(indicators.get(ind, StatusLevel.OK))
        for ind in ALL_INDICATORS
    }


def validate_display(
    displayed: Mapping[str, str],
    units: Mapping[str, Unit],
) -> list[StatusDiscrepancy]:
    """Compare rendered unit statuses against a fresh aggregate.

    Returns one discrepancy per diverging or unknown unit; empty list when
    everything on screen is consistent.
    """
    discrepancies: list[StatusDiscrepancy] = []
    for unit_id, shown in displayed.items():
        unit = units.get(unit_id)
        if unit is None:
            discrepancies.append(StatusDiscrepancy(
                unit_id=unit_id, displayed=str(shown), reason="unknown_unit",
            ))
            continue
        expected = unit_status(unit)
        if _lookup(shown) is not expected:
            discrepancies.append(StatusDiscrepancy(
                unit_id=unit_id, displayed=str(shown),
                expected=expected.value, reason="mismatch",
            ))

    if discrepancies:
        logger.warning("Display integrity check: %d discrepancies", len(discrepancies))
    return discrepancies
