"""Backend package for NEORisk.

Exposes the risk engine, the NeoWs client and the feed service.
"""
from __future__ import annotations

from .data_mock import MockDataManager
from .feed_service import AssessedNEO, FeedReport, NEOAlert, NEOFeedService, NEONotFoundError
from .labels import describe_atmospheric_entry, describe_torino_level, energy_category_color, torino_color
from .nasa_client import NASAAPIError, NASAClient
from .risk_engine import (
    AtmosphericEntryOutcome,
    EnergyCategory,
    InvalidObservationError,
    NearEarthObjectObservation,
    RiskAssessment,
    assess_risk,
    validate_observation,
)

__all__ = [
    "MockDataManager",
    "AssessedNEO",
    "FeedReport",
    "NEOAlert",
    "NEOFeedService",
    "NEONotFoundError",
    "describe_atmospheric_entry",
    "describe_torino_level",
    "energy_category_color",
    "torino_color",
    "NASAAPIError",
    "NASAClient",
    "AtmosphericEntryOutcome",
    "EnergyCategory",
    "InvalidObservationError",
    "NearEarthObjectObservation",
    "RiskAssessment",
    "assess_risk",
    "validate_observation",
]
