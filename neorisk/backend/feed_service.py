"""High-level NEO feed service combining NeoWs data, mock fallbacks and the risk engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Tuple

import calendar
import logging

import requests
from scipy import constants

from .data_mock import MockDataManager
from .nasa_client import DEFAULT_TIMEOUT, NASAAPIError, NASAClient, validate_feed_window
from .risk_engine import (
    InvalidObservationError,
    NearEarthObjectObservation,
    RiskAssessment,
    assess_risk,
    calculate_urgency_score,
)

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)

AU_IN_KM = constants.astronomical_unit / constants.kilo
WEEK = timedelta(days=7)

PERIOD_MONTHS = {
    "month": 1,
    "quarter": 3,
    "year": 12,
    "decade": 120,
}

HAZARD_FILTERS = ("all", "hazardous", "safe")


class NEONotFoundError(LookupError):
    """Raised when an object is unknown to both NeoWs and the mock catalogue."""


@dataclass(frozen=True)
class AssessedNEO:
    observation: NearEarthObjectObservation
    assessment: RiskAssessment
    nasa_jpl_url: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        obs = self.observation
        return {
            "id": obs.id,
            "name": obs.name,
            "approach_date": obs.approach_date.isoformat() if obs.approach_date else None,
            "diameter_m": obs.estimated_diameter_m,
            "velocity_kms": obs.relative_velocity_kms,
            "miss_distance_km": obs.miss_distance_km,
            "is_potentially_hazardous": obs.is_potentially_hazardous,
            "nasa_jpl_url": self.nasa_jpl_url,
            "enhanced_metrics": self.assessment.to_dict(),
        }


@dataclass(frozen=True)
class NEOAlert:
    neo_id: str
    name: str
    torino_level: int
    risk_score: int
    miss_distance_km: float
    approach_date: Optional[date]
    severity: str
    message: str


@dataclass(frozen=True)
class FeedReport:
    start_date: date
    end_date: date
    source: str
    entries: Tuple[AssessedNEO, ...]
    skipped_ids: Tuple[str, ...] = ()
    risk_distribution: Dict[str, int] = field(default_factory=dict)
    size_distribution: Dict[str, int] = field(default_factory=dict)
    distance_categories: Dict[str, int] = field(default_factory=dict)

    @property
    def total_count(self) -> int:
        return len(self.entries)

    @property
    def hazardous_count(self) -> int:
        return sum(1 for entry in self.entries if entry.observation.is_potentially_hazardous)

    def to_dict(self) -> Dict[str, object]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "source": self.source,
            "total_count": self.total_count,
            "hazardous_count": self.hazardous_count,
            "skipped_ids": list(self.skipped_ids),
            "risk_distribution": dict(self.risk_distribution),
            "size_distribution": dict(self.size_distribution),
            "distance_categories": dict(self.distance_categories),
            "enhanced_objects": [entry.to_dict() for entry in self.entries],
        }


class NEOFeedService:
    """Coordinates live NeoWs data with deterministic fallbacks."""

    DEFAULT_PROBE_ID = "3542519"

    def __init__(
        self,
        *,
        nasa_api_key: str,
        enable_live_apis: bool = True,
        alert_risk_score: int = 50,
        alert_torino_level: int = 2,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.enable_live_apis = enable_live_apis
        self.alert_risk_score = alert_risk_score
        self.alert_torino_level = alert_torino_level
        self.mock_manager = MockDataManager()
        self.nasa_client = NASAClient(nasa_api_key, session, timeout=timeout) if enable_live_apis else None
        # Parsing is stateless, so offline mode still needs a client to normalise payloads.
        self._parser = self.nasa_client or NASAClient(nasa_api_key, session, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: "Settings", *, session: Optional[requests.Session] = None) -> "NEOFeedService":
        return cls(
            nasa_api_key=settings.nasa_api_key,
            enable_live_apis=settings.use_live_apis,
            alert_risk_score=settings.alert_risk_score,
            alert_torino_level=settings.alert_torino_level,
            session=session,
            timeout=settings.request_timeout,
        )

    # ------------------------------------------------------------------
    # Public accessors
    # ------------------------------------------------------------------
    def assess_feed(self, start_date: date, end_date: date) -> FeedReport:
        """Assess every object in the feed window, omitting malformed records."""

        validate_feed_window(start_date, end_date)
        payload, source = self._fetch_feed(start_date, end_date)
        entries, skipped = self._assess_feed_payload(payload)

        return FeedReport(
            start_date=start_date,
            end_date=end_date,
            source=source,
            entries=tuple(entries),
            skipped_ids=tuple(skipped),
            risk_distribution=risk_distribution(entry.assessment.risk_score for entry in entries),
            size_distribution=size_distribution(entry.observation.estimated_diameter_m for entry in entries),
            distance_categories=distance_categories(entry.observation.miss_distance_km for entry in entries),
        )

    def assess_neo(self, neo_id: str) -> AssessedNEO:
        """Assess a single object by NeoWs id.

        ``InvalidObservationError`` propagates: for a single lookup there is
        nothing else to show.
        """

        payload: Optional[Dict[str, object]] = None
        if self.nasa_client is not None:
            try:
                payload = self.nasa_client.fetch_neo(neo_id)
            except NASAAPIError as exc:
                logger.warning("NASA NEO lookup failed for %s: %s", neo_id, exc)
        if payload is None:
            try:
                payload = self.mock_manager.get_neo(neo_id)
            except KeyError:
                raise NEONotFoundError(neo_id) from None
        return self._assess_payload(payload)

    def close_approaches(
        self,
        start_date: date,
        end_date: date,
        *,
        distance_max_km: float = 10_000_000.0,
        diameter_min_m: float = 0.0,
        hazardous_only: bool = False,
    ) -> List[Dict[str, object]]:
        """Return filtered approaches ordered by ascending miss distance."""

        report = self.assess_feed(start_date, end_date)
        approaches: List[Dict[str, object]] = []
        for entry in report.entries:
            obs = entry.observation
            if obs.miss_distance_km > distance_max_km:
                continue
            if obs.estimated_diameter_m < diameter_min_m:
                continue
            if hazardous_only and not obs.is_potentially_hazardous:
                continue
            item = entry.to_dict()
            item["miss_distance_au"] = obs.miss_distance_km / AU_IN_KM
            item["urgency_score"] = calculate_urgency_score(
                obs.miss_distance_km, obs.estimated_diameter_m, obs.is_potentially_hazardous
            )
            approaches.append(item)
        approaches.sort(key=lambda item: item["miss_distance_km"])
        return approaches

    @staticmethod
    def filter_and_sort(
        entries: Iterable[AssessedNEO],
        *,
        hazard_filter: str = "all",
        sort_by: str = "miss_distance",
    ) -> List[AssessedNEO]:
        if hazard_filter not in HAZARD_FILTERS:
            raise ValueError(f"hazard_filter must be one of {HAZARD_FILTERS}, got {hazard_filter!r}")

        selected = list(entries)
        if hazard_filter == "hazardous":
            selected = [entry for entry in selected if entry.observation.is_potentially_hazardous]
        elif hazard_filter == "safe":
            selected = [entry for entry in selected if not entry.observation.is_potentially_hazardous]

        if sort_by == "risk_score":
            selected.sort(key=lambda entry: entry.assessment.risk_score, reverse=True)
        elif sort_by == "velocity":
            selected.sort(key=lambda entry: entry.observation.relative_velocity_kms, reverse=True)
        elif sort_by == "diameter":
            selected.sort(key=lambda entry: entry.observation.estimated_diameter_m, reverse=True)
        else:
            selected.sort(key=lambda entry: entry.observation.miss_distance_km)
        return selected

    def build_alerts(self, entries: Iterable[AssessedNEO]) -> List[NEOAlert]:
        alerts: List[NEOAlert] = []
        for entry in entries:
            torino = entry.assessment.torino_level
            score = entry.assessment.risk_score
            if torino < self.alert_torino_level and score < self.alert_risk_score:
                continue
            severity = alert_severity(torino, score)
            alerts.append(
                NEOAlert(
                    neo_id=entry.observation.id,
                    name=entry.observation.name,
                    torino_level=torino,
                    risk_score=score,
                    miss_distance_km=entry.observation.miss_distance_km,
                    approach_date=entry.observation.approach_date,
                    severity=severity,
                    message=_alert_message(severity, entry.observation.name, torino),
                )
            )
        return alerts

    def period_statistics(self, period: str = "year", *, today: Optional[date] = None) -> Dict[str, object]:
        """Aggregate weekly feed windows covering ``period`` back from ``today``."""

        end_date = today or date.today()
        if period not in PERIOD_MONTHS:
            logger.debug("Unknown statistics period %r, using 'year'", period)
            period = "year"
        start_date = _shift_months(end_date, -PERIOD_MONTHS[period])

        records: List[Tuple[date, NearEarthObjectObservation]] = []
        window_start = start_date
        while window_start <= end_date:
            window_end = min(window_start + timedelta(days=6), end_date)
            payload = self._fetch_statistics_window(window_start, window_end)
            if payload is not None:
                entries, _ = self._assess_feed_payload(payload)
                records.extend((window_start, entry.observation) for entry in entries)
            window_start += WEEK

        statistics = summarise_observations(records)
        statistics.update(
            {
                "period": period,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
            }
        )
        return statistics

    def get_health_snapshot(self) -> Dict[str, object]:
        """Summarise the health of live integrations and fallbacks."""

        services: Dict[str, Dict[str, object]] = {}

        if self.nasa_client is None:
            services["nasa_neows_api"] = {
                "status": "disabled",
                "detail": "Live NASA API access disabled; using deterministic mock data.",
            }
        else:
            try:
                self.nasa_client.fetch_neo(self.DEFAULT_PROBE_ID)
                services["nasa_neows_api"] = {"status": "ok"}
            except NASAAPIError as exc:
                services["nasa_neows_api"] = {
                    "status": "degraded",
                    "detail": str(exc),
                }

        services["mock_data"] = {
            "status": "ok",
            "detail": "Deterministic fallback catalogue available.",
        }

        return {
            "status": _aggregate_overall_status(services.values()),
            "services": services,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _fetch_feed(self, start_date: date, end_date: date) -> Tuple[Dict[str, object], str]:
        if self.nasa_client is not None:
            try:
                return self.nasa_client.fetch_feed(start_date, end_date), "nasa"
            except NASAAPIError as exc:
                logger.warning("NASA feed fetch failed for %s..%s: %s", start_date, end_date, exc)
        return self.mock_manager.feed(start_date, end_date), "mock"

    def _fetch_statistics_window(self, start_date: date, end_date: date) -> Optional[Dict[str, object]]:
        if self.nasa_client is None:
            return self.mock_manager.feed(start_date, end_date)
        try:
            return self.nasa_client.fetch_feed(start_date, end_date)
        except NASAAPIError as exc:
            logger.warning("Skipping statistics window starting %s: %s", start_date, exc)
            return None

    def _assess_feed_payload(self, payload: Dict[str, object]) -> Tuple[List[AssessedNEO], List[str]]:
        entries: List[AssessedNEO] = []
        skipped: List[str] = []
        for approach_date, neo in self._parser.iter_feed_objects(payload):
            try:
                entries.append(self._assess_payload(neo, approach_date))
            except InvalidObservationError as exc:
                neo_id = str(neo.get("id") or neo.get("neo_reference_id") or "?") if isinstance(neo, dict) else "?"
                logger.warning("Omitting NEO %s from feed: %s", neo_id, exc)
                skipped.append(neo_id)
        return entries, skipped

    def _assess_payload(self, payload: Dict[str, object], approach_date: Optional[str] = None) -> AssessedNEO:
        observation = self._parser.to_observation(payload, approach_date)
        return AssessedNEO(
            observation=observation,
            assessment=assess_risk(observation),
            nasa_jpl_url=payload.get("nasa_jpl_url"),
        )


# ----------------------------------------------------------------------
# Bucketing and aggregation
# ----------------------------------------------------------------------
def risk_distribution(scores: Iterable[int]) -> Dict[str, int]:
    buckets = {"low": 0, "medium": 0, "high": 0, "critical": 0}
    for score in scores:
        if score >= 70:
            buckets["critical"] += 1
        elif score >= 40:
            buckets["high"] += 1
        elif score >= 20:
            buckets["medium"] += 1
        else:
            buckets["low"] += 1
    return buckets


def size_distribution(diameters_m: Iterable[float]) -> Dict[str, int]:
    buckets = {"small": 0, "medium": 0, "large": 0, "huge": 0}
    for diameter in diameters_m:
        if diameter < 50:
            buckets["small"] += 1
        elif diameter < 500:
            buckets["medium"] += 1
        elif diameter < 1000:
            buckets["large"] += 1
        else:
            buckets["huge"] += 1
    return buckets


def distance_categories(distances_km: Iterable[float]) -> Dict[str, int]:
    buckets = {"very_close": 0, "close": 0, "moderate": 0, "distant": 0}
    for distance in distances_km:
        if distance < 1_000_000:
            buckets["very_close"] += 1
        elif distance < 5_000_000:
            buckets["close"] += 1
        elif distance < 10_000_000:
            buckets["moderate"] += 1
        else:
            buckets["distant"] += 1
    return buckets


def alert_severity(torino_level: int, risk_score: int) -> str:
    if torino_level >= 3:
        return "critical"
    if torino_level >= 1:
        return "high"
    if risk_score >= 50:
        return "medium"
    return "low"


def summarise_observations(records: Sequence[Tuple[date, NearEarthObjectObservation]]) -> Dict[str, object]:
    """Totals, averages and weekly trends for ``(week_start, observation)`` pairs."""

    observations = [obs for _, obs in records]
    count = len(observations)

    weekly: Dict[str, Dict[str, object]] = {}
    week_distances: Dict[str, List[float]] = {}
    for week_start, obs in records:
        key = week_start.isoformat()
        trend = weekly.setdefault(key, {"count": 0, "hazardous": 0, "avg_distance_km": 0.0})
        trend["count"] += 1
        if obs.is_potentially_hazardous:
            trend["hazardous"] += 1
        week_distances.setdefault(key, []).append(obs.miss_distance_km)
    for key, distances in week_distances.items():
        weekly[key]["avg_distance_km"] = sum(distances) / len(distances)

    return {
        "total_objects": count,
        "hazardous_objects": sum(1 for obs in observations if obs.is_potentially_hazardous),
        "average_diameter_m": _mean(obs.estimated_diameter_m for obs in observations),
        "average_velocity_kms": _mean(obs.relative_velocity_kms for obs in observations),
        "average_distance_km": _mean(obs.miss_distance_km for obs in observations),
        "weekly_trends": weekly,
        "risk_distribution": risk_distribution(assess_risk(obs).risk_score for obs in observations),
        "size_distribution": size_distribution(obs.estimated_diameter_m for obs in observations),
    }


def _mean(values: Iterable[float]) -> float:
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


def _alert_message(severity: str, name: str, torino_level: int) -> str:
    if severity == "critical":
        return f"CRITICAL: {name} poses significant impact threat (Torino {torino_level})"
    if severity == "high":
        return f"ALERT: {name} requires monitoring (Torino {torino_level})"
    if severity == "medium":
        return f"WARNING: {name} shows elevated risk factors"
    return f"NOTICE: {name} requires standard observation"


def _shift_months(anchor: date, months: int) -> date:
    month_index = anchor.year * 12 + (anchor.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(anchor.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _aggregate_overall_status(service_snapshots: Iterable[Dict[str, object]]) -> str:
    seen_statuses = {snapshot.get("status", "unknown") for snapshot in service_snapshots}
    if "error" in seen_statuses:
        return "error"
    if "degraded" in seen_statuses:
        return "degraded"
    if "ok" in seen_statuses and seen_statuses.issubset({"ok", "disabled", "unknown"}):
        return "ok"
    if seen_statuses.issubset({"disabled", "unknown"}):
        return "degraded"
    return "unknown"
