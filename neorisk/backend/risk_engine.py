"""Risk classification engine for near-Earth object close approaches.

Every function here is pure: no I/O, no randomness and no wall-clock access,
so one engine serves both API responses and UI detail panels. The Torino and
Palermo values are simplified approximations, not the official scales.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from numbers import Real
from typing import Dict, Optional

import math

from scipy import constants

# -----------------------------------------------------------------------------
# Shared constants
# -----------------------------------------------------------------------------
ASTEROID_DENSITY_KG_M3 = 2700.0
HIROSHIMA_JOULES = 6.3e13
KM_TO_M = constants.kilo
BASE_IMPACT_PROBABILITY = 1e-6

PALERMO_MIN = -10
PALERMO_MAX = 5

# Atmospheric entry thresholds
CRITICAL_DIAMETER_M = 50.0
CRITICAL_VELOCITY_KMS = 20.0
AIRBURST_DIAMETER_M = 500.0


class AtmosphericEntryOutcome(str, Enum):
    WILL_BURN_UP_COMPLETELY = "WillBurnUpCompletely"
    PARTIAL_FRAGMENTATION_AIRBURST_POSSIBLE = "PartialFragmentationAirburstPossible"
    SIGNIFICANT_AIRBURST_GROUND_IMPACT_POSSIBLE = "SignificantAirburstGroundImpactPossible"
    REACHES_GROUND_WITH_SUBSTANTIAL_ENERGY = "ReachesGroundWithSubstantialEnergy"


class EnergyCategory(str, Enum):
    LOCAL = "Local"
    REGIONAL = "Regional"
    CONTINENTAL = "Continental"
    GLOBAL = "Global"


class InvalidObservationError(ValueError):
    """Raised when an observation cannot be assessed safely."""

    def __init__(self, field: str, value: object, reason: str = "invalid value") -> None:
        super().__init__(f"{field}={value!r}: {reason}")
        self.field = field
        self.value = value
        self.reason = reason


@dataclass(frozen=True)
class NearEarthObjectObservation:
    """One close-approach event, normalised to km, m and km/s."""

    id: str
    name: str
    estimated_diameter_m: float
    relative_velocity_kms: float
    miss_distance_km: float
    is_potentially_hazardous: bool
    approach_date: Optional[date] = None


@dataclass(frozen=True)
class RiskAssessment:
    risk_score: int
    torino_level: int
    palermo_scale: float
    kinetic_energy_joules: float
    hiroshima_equivalent: float
    damage_radius_m: int
    impact_probability: float
    atmospheric_entry_outcome: AtmosphericEntryOutcome
    energy_category: EnergyCategory

    def to_dict(self) -> Dict[str, object]:
        return {
            "risk_score": self.risk_score,
            "torino_level": self.torino_level,
            "palermo_scale": self.palermo_scale,
            "kinetic_energy_joules": self.kinetic_energy_joules,
            "hiroshima_equivalent": self.hiroshima_equivalent,
            "damage_radius_m": self.damage_radius_m,
            "impact_probability": self.impact_probability,
            "atmospheric_entry_outcome": self.atmospheric_entry_outcome.value,
            "energy_category": self.energy_category.value,
        }


# -----------------------------------------------------------------------------
# Utility helpers
# -----------------------------------------------------------------------------
def _require_real(field: str, value: object) -> float:
    # bool is an int subclass; a flag in a numeric slot is a parse bug upstream
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidObservationError(field, value, "not a real number")
    try:
        number = float(value)
    except OverflowError:
        raise InvalidObservationError(field, value, "out of range") from None
    if not math.isfinite(number):
        raise InvalidObservationError(field, value, "not finite")
    return number


def _sphere_mass_kg(diameter_m: float, density_kg_m3: float = ASTEROID_DENSITY_KG_M3) -> float:
    radius_m = diameter_m / 2.0
    volume_m3 = (4.0 / 3.0) * math.pi * radius_m**3
    return density_kg_m3 * volume_m3


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# -----------------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------------
def validate_observation(observation: NearEarthObjectObservation) -> None:
    """Raise :class:`InvalidObservationError` for the first bad numeric field."""

    diameter = _require_real("estimated_diameter_m", observation.estimated_diameter_m)
    if diameter <= 0:
        raise InvalidObservationError("estimated_diameter_m", observation.estimated_diameter_m, "must be positive")

    velocity = _require_real("relative_velocity_kms", observation.relative_velocity_kms)
    if velocity <= 0:
        raise InvalidObservationError("relative_velocity_kms", observation.relative_velocity_kms, "must be positive")

    miss_distance = _require_real("miss_distance_km", observation.miss_distance_km)
    if miss_distance < 0:
        raise InvalidObservationError("miss_distance_km", observation.miss_distance_km, "must not be negative")


def calculate_risk_score(
    miss_distance_km: float,
    velocity_kms: float,
    diameter_m: float,
    is_hazardous: bool,
) -> int:
    """Additive 0-100 point score; each factor contributes its first matching bucket."""

    score = 0

    if miss_distance_km < 100_000:
        score += 40
    elif miss_distance_km < 500_000:
        score += 30
    elif miss_distance_km < 1_000_000:
        score += 20
    elif miss_distance_km < 5_000_000:
        score += 10

    if velocity_kms > 30:
        score += 30
    elif velocity_kms > 20:
        score += 20
    elif velocity_kms > 10:
        score += 10

    if diameter_m > 1000:
        score += 20
    elif diameter_m > 500:
        score += 15
    elif diameter_m > 100:
        score += 10
    elif diameter_m > 50:
        score += 5

    if is_hazardous:
        score += 10

    return min(100, score)


def calculate_torino_level(miss_distance_km: float, diameter_m: float, is_hazardous: bool) -> int:
    if not is_hazardous:
        return 0
    if miss_distance_km < 100_000 and diameter_m > 1000:
        return 8
    if miss_distance_km < 500_000 and diameter_m > 500:
        return 6
    if miss_distance_km < 1_000_000 and diameter_m > 100:
        return 4
    if miss_distance_km < 5_000_000:
        return 2
    return 1


def calculate_kinetic_energy(
    diameter_m: float,
    velocity_kms: float,
    *,
    density_kg_m3: float = ASTEROID_DENSITY_KG_M3,
) -> float:
    """Return kinetic energy in Joules for a uniform stony sphere."""

    mass_kg = _sphere_mass_kg(diameter_m, density_kg_m3)
    velocity_ms = velocity_kms * KM_TO_M
    return 0.5 * mass_kg * velocity_ms**2


def calculate_hiroshima_equivalent(energy_joules: float) -> float:
    return energy_joules / HIROSHIMA_JOULES


def calculate_palermo_scale(miss_distance_km: float, diameter_m: float, is_hazardous: bool) -> float:
    """Simplified Palermo-like value clamped to [-10, 5]."""

    if not is_hazardous:
        return float(PALERMO_MIN)

    score = 0
    if miss_distance_km < 100_000:
        score += 2
    elif miss_distance_km < 1_000_000:
        score += 1
    elif miss_distance_km >= 10_000_000:
        score -= 1

    if diameter_m > 1000:
        score += 1
    elif diameter_m < 100:
        score -= 1

    return float(max(PALERMO_MIN, min(PALERMO_MAX, score)))


def calculate_damage_radius(energy_joules: float) -> int:
    """Damage radius in metres, ``(E / 1e12) ** 0.4`` kilometres."""

    return _round_half_up((energy_joules / 1e12) ** 0.4 * 1000.0)


def calculate_impact_probability(miss_distance_km: float, diameter_m: float, is_hazardous: bool) -> float:
    probability = BASE_IMPACT_PROBABILITY
    if is_hazardous:
        probability *= 100
    if miss_distance_km < 1_000_000:
        probability *= 10
    if diameter_m > 1000:
        probability *= 5
    return max(0.0, min(1.0, probability))


def classify_atmospheric_entry(diameter_m: float, velocity_kms: float) -> AtmosphericEntryOutcome:
    if diameter_m < CRITICAL_DIAMETER_M and velocity_kms < CRITICAL_VELOCITY_KMS:
        return AtmosphericEntryOutcome.WILL_BURN_UP_COMPLETELY
    if diameter_m < CRITICAL_DIAMETER_M:
        return AtmosphericEntryOutcome.PARTIAL_FRAGMENTATION_AIRBURST_POSSIBLE
    if diameter_m < AIRBURST_DIAMETER_M:
        return AtmosphericEntryOutcome.SIGNIFICANT_AIRBURST_GROUND_IMPACT_POSSIBLE
    return AtmosphericEntryOutcome.REACHES_GROUND_WITH_SUBSTANTIAL_ENERGY


def categorize_energy(energy_joules: float) -> EnergyCategory:
    if energy_joules < 1e12:
        return EnergyCategory.LOCAL
    if energy_joules < 1e15:
        return EnergyCategory.REGIONAL
    if energy_joules < 1e18:
        return EnergyCategory.CONTINENTAL
    return EnergyCategory.GLOBAL


def calculate_urgency_score(miss_distance_km: float, diameter_m: float, is_hazardous: bool) -> int:
    """Ranking score for close-approach listings; independent of velocity."""

    score = 0

    if miss_distance_km < 1_000_000:
        score += 40
    elif miss_distance_km < 5_000_000:
        score += 20
    elif miss_distance_km < 10_000_000:
        score += 10

    if diameter_m > 1000:
        score += 30
    elif diameter_m > 500:
        score += 20
    elif diameter_m > 100:
        score += 10

    if is_hazardous:
        score += 30

    return min(100, score)


def assess_risk(observation: NearEarthObjectObservation) -> RiskAssessment:
    """Validate ``observation`` and derive its full risk classification."""

    validate_observation(observation)

    diameter_m = float(observation.estimated_diameter_m)
    velocity_kms = float(observation.relative_velocity_kms)
    miss_distance_km = float(observation.miss_distance_km)
    hazardous = bool(observation.is_potentially_hazardous)

    try:
        energy_joules = calculate_kinetic_energy(diameter_m, velocity_kms)
    except OverflowError:
        energy_joules = math.inf
    if not math.isfinite(energy_joules):
        raise InvalidObservationError(
            "estimated_diameter_m", observation.estimated_diameter_m, "kinetic energy out of range"
        )

    return RiskAssessment(
        risk_score=calculate_risk_score(miss_distance_km, velocity_kms, diameter_m, hazardous),
        torino_level=calculate_torino_level(miss_distance_km, diameter_m, hazardous),
        palermo_scale=calculate_palermo_scale(miss_distance_km, diameter_m, hazardous),
        kinetic_energy_joules=energy_joules,
        hiroshima_equivalent=calculate_hiroshima_equivalent(energy_joules),
        damage_radius_m=calculate_damage_radius(energy_joules),
        impact_probability=calculate_impact_probability(miss_distance_km, diameter_m, hazardous),
        atmospheric_entry_outcome=classify_atmospheric_entry(diameter_m, velocity_kms),
        energy_category=categorize_energy(energy_joules),
    )
