"""NASA NeoWs API integration and the observation parse boundary."""
from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Iterator, Optional, Tuple

import logging

import requests

from .risk_engine import InvalidObservationError, NearEarthObjectObservation, validate_observation


logger = logging.getLogger(__name__)

NASA_API_ROOT = "https://api.nasa.gov/neo/rest/v1"
DEFAULT_TIMEOUT = 10
MAX_FEED_SPAN_DAYS = 7


class NASAAPIError(RuntimeError):
    """Raised when the NASA NeoWs API request fails."""


def validate_feed_window(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise ValueError(f"end_date {end_date} precedes start_date {start_date}")
    if (end_date - start_date).days > MAX_FEED_SPAN_DAYS:
        raise ValueError(f"NeoWs feed windows are limited to {MAX_FEED_SPAN_DAYS} days")


class NASAClient:
    """Thin NeoWs wrapper; normalises payloads into engine observations."""

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.api_key = api_key or "DEMO_KEY"
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def fetch_feed(self, start_date: date, end_date: date) -> Dict[str, object]:
        """Return the raw feed payload for an inclusive window of at most 7 days."""

        validate_feed_window(start_date, end_date)
        return self._request_json(
            "/feed",
            params={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
        )

    def fetch_neo(self, neo_id: str) -> Dict[str, object]:
        return self._request_json(f"/neo/{neo_id}")

    def browse(self, *, page: int = 0, page_size: int = 20) -> Dict[str, object]:
        return self._request_json("/neo/browse", params={"page": page, "size": page_size})

    # ------------------------------------------------------------------
    # Parsing helpers
    # ------------------------------------------------------------------
    @staticmethod
    def iter_feed_objects(feed_payload: Dict[str, object]) -> Iterator[Tuple[str, Dict[str, object]]]:
        """Yield ``(approach_date, neo_payload)`` pairs in date order."""

        by_date = feed_payload.get("near_earth_objects", {}) or {}
        for approach_date in sorted(by_date):
            for neo in by_date[approach_date] or []:
                yield approach_date, neo

    def to_observation(
        self,
        payload: Dict[str, object],
        approach_date: Optional[str] = None,
    ) -> NearEarthObjectObservation:
        """Normalise a NeoWs object into a validated observation.

        Raises :class:`InvalidObservationError` naming the first missing or
        unparsable field; nothing is coerced to NaN or a default.
        """

        payload = self._require_mapping("payload", payload)
        diameters = self._require_mapping("estimated_diameter", payload.get("estimated_diameter"))
        estimated = self._require_mapping("estimated_diameter_m", diameters.get("meters"))

        close_approach = payload.get("close_approach_data") or []
        if not isinstance(close_approach, list):
            raise InvalidObservationError("close_approach_data", close_approach, "expected a list")
        first_approach = self._require_mapping("close_approach_data", close_approach[0] if close_approach else None)

        diameter_m = self._require_float(
            "estimated_diameter_m", estimated.get("estimated_diameter_max")
        )
        velocity_kms = self._require_float(
            "relative_velocity_kms",
            self._require_mapping("relative_velocity_kms", first_approach.get("relative_velocity")).get(
                "kilometers_per_second"
            ),
        )
        miss_distance_km = self._require_float(
            "miss_distance_km",
            self._require_mapping("miss_distance_km", first_approach.get("miss_distance")).get("kilometers"),
        )

        observation = NearEarthObjectObservation(
            id=str(payload.get("id") or payload.get("neo_reference_id") or ""),
            name=payload.get("name", "Unknown"),
            estimated_diameter_m=diameter_m,
            relative_velocity_kms=velocity_kms,
            miss_distance_km=miss_distance_km,
            is_potentially_hazardous=bool(payload.get("is_potentially_hazardous_asteroid", False)),
            approach_date=self._parse_date(approach_date or first_approach.get("close_approach_date")),
        )
        validate_observation(observation)
        return observation

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _request_json(self, path: str, params: Optional[Dict[str, object]] = None) -> Dict[str, object]:
        url = f"{NASA_API_ROOT}{path}"
        merged_params = {"api_key": self.api_key}
        if params:
            merged_params.update(params)
        try:
            response = self.session.get(url, params=merged_params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise NASAAPIError(str(exc)) from exc
        except ValueError as exc:
            raise NASAAPIError(f"Malformed JSON from {path}: {exc}") from exc

    @staticmethod
    def _require_float(field: str, value: object) -> float:
        if value is None or isinstance(value, bool):
            raise InvalidObservationError(field, value, "missing")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise InvalidObservationError(field, value, "not a number") from None
        except OverflowError:
            raise InvalidObservationError(field, value, "out of range") from None

    @staticmethod
    def _require_mapping(field: str, value: object) -> Dict[str, object]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise InvalidObservationError(field, value, "expected an object")
        return value

    @staticmethod
    def _parse_date(value: object) -> Optional[date]:
        if not value:
            return None
        try:
            return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
        except ValueError:
            logger.debug("Ignoring unparsable approach date %r", value)
            return None
