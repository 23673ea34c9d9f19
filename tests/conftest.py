"""Shared fixtures: an in-memory stand-in for ``requests.Session``."""
from datetime import date

import pytest
import requests

from neorisk.backend.risk_engine import NearEarthObjectObservation


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def json(self):
        return self._payload


class FakeSession:
    """Answers GETs from a path-suffix routing table and records every call."""

    def __init__(self, routes=None, error=None):
        self.routes = routes or {}
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        if self.error is not None:
            raise self.error
        for suffix, response in self.routes.items():
            if url.endswith(suffix):
                return response
        return FakeResponse({"error": "not found"}, status_code=404)


@pytest.fixture
def make_observation():
    def _make(
        diameter=100.0,
        velocity=10.0,
        miss=1_000_000.0,
        hazardous=False,
        neo_id="2000433",
        name="433 Eros (A898 PA)",
    ):
        return NearEarthObjectObservation(
            id=neo_id,
            name=name,
            estimated_diameter_m=diameter,
            relative_velocity_kms=velocity,
            miss_distance_km=miss,
            is_potentially_hazardous=hazardous,
            approach_date=date(2025, 10, 12),
        )

    return _make


@pytest.fixture
def failing_session():
    return FakeSession(error=requests.ConnectionError("network unreachable"))
