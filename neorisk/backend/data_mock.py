"""Mock NeoWs payloads for offline runs.

Live NASA access is rate limited (DEMO_KEY allows a handful of requests per
hour), so the service can fall back to this deterministic catalogue. Payloads
mirror the NeoWs JSON shape, string-typed numerics included, so they travel
through the same parse boundary as live data.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, List, Optional

import copy


def _neo_payload(
    neo_id: str,
    name: str,
    *,
    diameter_min_m: float,
    diameter_max_m: float,
    velocity_kms: str,
    miss_distance_km: str,
    hazardous: bool,
    absolute_magnitude_h: float,
) -> Dict[str, object]:
    return {
        "id": neo_id,
        "neo_reference_id": neo_id,
        "name": name,
        "nasa_jpl_url": f"https://ssd.jpl.nasa.gov/tools/sbdb_lookup.html#/?sstr={neo_id}",
        "absolute_magnitude_h": absolute_magnitude_h,
        "estimated_diameter": {
            "meters": {
                "estimated_diameter_min": diameter_min_m,
                "estimated_diameter_max": diameter_max_m,
            },
        },
        "is_potentially_hazardous_asteroid": hazardous,
        "close_approach_data": [
            {
                "close_approach_date": None,
                "relative_velocity": {"kilometers_per_second": velocity_kms},
                "miss_distance": {"kilometers": miss_distance_km},
                "orbiting_body": "Earth",
            }
        ],
    }


class MockDataManager:
    """Provides a fixed catalogue shaped like NeoWs responses."""

    def __init__(self) -> None:
        self._neo_catalog: Dict[str, Dict[str, object]] = {
            "3542519": _neo_payload(
                "3542519",
                "(2010 PK9)",
                diameter_min_m=107.4,
                diameter_max_m=240.2,
                velocity_kms="21.5",
                miss_distance_km="120000.0",
                hazardous=True,
                absolute_magnitude_h=21.0,
            ),
            "2099942": _neo_payload(
                "2099942",
                "99942 Apophis (2004 MN4)",
                diameter_min_m=167.7,
                diameter_max_m=375.0,
                velocity_kms="7.42",
                miss_distance_km="38012.0",
                hazardous=True,
                absolute_magnitude_h=19.1,
            ),
            "2101955": _neo_payload(
                "2101955",
                "101955 Bennu (1999 RQ36)",
                diameter_min_m=252.9,
                diameter_max_m=565.5,
                velocity_kms="12.01",
                miss_distance_km="750000.0",
                hazardous=True,
                absolute_magnitude_h=20.2,
            ),
            "3726710": _neo_payload(
                "3726710",
                "(2015 RC)",
                diameter_min_m=14.3,
                diameter_max_m=32.0,
                velocity_kms="15.0",
                miss_distance_km="8000000.0",
                hazardous=False,
                absolute_magnitude_h=24.8,
            ),
            "54016849": _neo_payload(
                "54016849",
                "(2020 QG)",
                diameter_min_m=2.5,
                diameter_max_m=5.6,
                velocity_kms="12.3",
                miss_distance_km="n/a",
                hazardous=False,
                absolute_magnitude_h=29.9,
            ),
        }

    def get_neo(self, neo_id: str, approach_date: Optional[date] = None) -> Dict[str, object]:
        """Return a copy of one catalogue payload; ``KeyError`` if unknown."""

        payload = copy.deepcopy(self._neo_catalog[neo_id])
        stamp = (approach_date or date(2025, 10, 12)).isoformat()
        for approach in payload["close_approach_data"]:
            approach["close_approach_date"] = stamp
        return payload

    def feed(self, start_date: date, end_date: date) -> Dict[str, object]:
        """Return a feed payload listing every catalogue object on every day."""

        by_date: Dict[str, List[Dict[str, object]]] = {}
        current = start_date
        while current <= end_date:
            by_date[current.isoformat()] = [self.get_neo(neo_id, current) for neo_id in self._neo_catalog]
            current += timedelta(days=1)

        return {
            "element_count": sum(len(objects) for objects in by_date.values()),
            "near_earth_objects": by_date,
        }
