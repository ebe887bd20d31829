"""Indicator definitions — human messages and display labels.

Each entry: indicator name -> {message, label}
Used by exporter.py for the CSV "Message" column and by the
/api/alarms/definitions endpoint.

Source: STATCOM power module protection list (12 monitored signals).
"""

from __future__ import annotations

from alarms.models import Indicator

INDICATOR_DEFINITIONS: dict[str, dict] = {
    Indicator.OVERTEMP.value: {
        "label": "Overtemp",
        "message": "IGBT module over-temperature",
    },
    Indicator.OVERCURRENT.value: {
        "label": "Overcurrent",
        "message": "Phase current above protection limit",
    },
    Indicator.DC_OVERVOLTAGE.value: {
        "label": "DC Overvoltage",
        "message": "DC link voltage above limit",
    },
    Indicator.DC_UNDERVOLTAGE.value: {
        "label": "DC Undervoltage",
        "message": "DC link voltage below limit",
    },
    Indicator.COOLING.value: {
        "label": "Cooling",
        "message": "Cooling water flow or pressure abnormal",
    },
    Indicator.GATE_DRIVER.value: {
        "label": "Gate Driver",
        "message": "Gate driver fault reported",
    },
    Indicator.COMMUNICATION.value: {
        "label": "Communication",
        "message": "Loss of communication with module controller",
    },
    Indicator.GRID_SYNC.value: {
        "label": "Grid Sync",
        "message": "PLL lost synchronization with grid voltage",
    },
    Indicator.HARMONICS.value: {
        "label": "Harmonics",
        "message": "Output harmonic distortion above limit",
    },
    Indicator.CAPACITOR.value: {
        "label": "Capacitor",
        "message": "DC capacitor bank degradation",
    },
    Indicator.FAN.value: {
        "label": "Fan",
        "message": "Cabinet fan failure",
    },
    Indicator.AUX_POWER.value: {
        "label": "Aux Power",
        "message": "Auxiliary power supply fault",
    },
}


def _key(indicator: Indicator | str) -> str:
    return indicator.value if isinstance(indicator, Indicator) else str(indicator)


def get_message(indicator: Indicator | str) -> str:
    """Human message for an indicator; unknown names fall back to the raw name."""
    key = _key(indicator)
    defn = INDICATOR_DEFINITIONS.get(key)
    return defn["message"] if defn else key


def get_label(indicator: Indicator | str) -> str:
    key = _key(indicator)
    defn = INDICATOR_DEFINITIONS.get(key)
    return defn["label"] if defn else key
