"""Display lookup tables for risk engine tags."""
from __future__ import annotations

from typing import Dict

from .risk_engine import AtmosphericEntryOutcome, EnergyCategory

DEFAULT_TORINO_COLOR = "#32CD32"

TORINO_COLORS: Dict[int, str] = {
    0: "#32CD32",
    1: "#32CD32",
    2: "#FFFF00",
    3: "#FFA500",
    4: "#FF8C00",
    5: "#FF4500",
    6: "#FF0000",
    7: "#FF0000",
    8: "#8B0000",
    9: "#8B0000",
    10: "#8B0000",
}

TORINO_DESCRIPTIONS: Dict[int, str] = {
    0: "No hazard",
    1: "Normal",
    2: "Merits attention",
    3: "Threatening",
    4: "Close encounter",
    5: "Threat",
    6: "Dangerous",
    7: "Dangerous encounter",
    8: "Certain collision",
    9: "Certain collision",
    10: "Certain collision",
}

ATMOSPHERIC_ENTRY_LABELS: Dict[AtmosphericEntryOutcome, str] = {
    AtmosphericEntryOutcome.WILL_BURN_UP_COMPLETELY: "Will burn up completely",
    AtmosphericEntryOutcome.PARTIAL_FRAGMENTATION_AIRBURST_POSSIBLE: "Partial fragmentation, airburst possible",
    AtmosphericEntryOutcome.SIGNIFICANT_AIRBURST_GROUND_IMPACT_POSSIBLE: "Significant airburst, ground impact possible",
    AtmosphericEntryOutcome.REACHES_GROUND_WITH_SUBSTANTIAL_ENERGY: "Will reach ground with substantial energy",
}

ENERGY_CATEGORY_COLORS: Dict[EnergyCategory, str] = {
    EnergyCategory.LOCAL: "green",
    EnergyCategory.REGIONAL: "yellow",
    EnergyCategory.CONTINENTAL: "orange",
    EnergyCategory.GLOBAL: "red",
}


def describe_torino_level(level: int) -> str:
    return TORINO_DESCRIPTIONS.get(level, "Unknown")


def torino_color(level: int) -> str:
    return TORINO_COLORS.get(level, DEFAULT_TORINO_COLOR)


def describe_atmospheric_entry(outcome: AtmosphericEntryOutcome) -> str:
    return ATMOSPHERIC_ENTRY_LABELS[AtmosphericEntryOutcome(outcome)]


def energy_category_color(category: EnergyCategory) -> str:
    return ENERGY_CATEGORY_COLORS[EnergyCategory(category)]
