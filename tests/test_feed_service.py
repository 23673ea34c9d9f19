"""Tests for feed assessment, analytics, alerts and statistics."""
import logging
from datetime import date

import pytest

from neorisk.backend.data_mock import MockDataManager
from neorisk.backend.feed_service import (
    NEOFeedService,
    NEONotFoundError,
    alert_severity,
    distance_categories,
    risk_distribution,
    size_distribution,
    summarise_observations,
)
from neorisk.backend.risk_engine import InvalidObservationError

from conftest import FakeResponse, FakeSession


DAY = date(2025, 10, 12)
MALFORMED_ID = "54016849"


@pytest.fixture
def offline_service():
    return NEOFeedService(nasa_api_key="DEMO_KEY", enable_live_apis=False)


@pytest.fixture
def report(offline_service):
    return offline_service.assess_feed(DAY, DAY)


def _ids(entries):
    return [entry.observation.id for entry in entries]


# -- assess_feed ---------------------------------------------------------------


class TestAssessFeed:

    def test_malformed_record_is_omitted(self, report):
        assert report.source == "mock"
        assert report.total_count == 4
        assert report.skipped_ids == (MALFORMED_ID,)
        assert MALFORMED_ID not in _ids(report.entries)

    def test_skip_is_logged(self, offline_service, caplog):
        with caplog.at_level(logging.WARNING, logger="neorisk.backend.feed_service"):
            offline_service.assess_feed(DAY, DAY)
        assert any(MALFORMED_ID in record.getMessage() for record in caplog.records)

    def test_counts_and_distributions(self, report):
        assert report.hazardous_count == 3
        assert report.risk_distribution == {"low": 1, "medium": 0, "high": 2, "critical": 1}
        assert report.size_distribution == {"small": 1, "medium": 2, "large": 1, "huge": 0}
        assert report.distance_categories == {"very_close": 3, "close": 0, "moderate": 1, "distant": 0}

    def test_entries_carry_assessments(self, report):
        by_id = {entry.observation.id: entry for entry in report.entries}
        assert by_id["3542519"].assessment.risk_score == 70
        assert by_id["3542519"].assessment.torino_level == 4
        assert by_id["3726710"].assessment.torino_level == 0
        assert by_id["3726710"].observation.approach_date == DAY

    def test_to_dict_is_json_ready(self, report):
        payload = report.to_dict()
        assert payload["total_count"] == 4
        assert payload["skipped_ids"] == [MALFORMED_ID]
        first = payload["enhanced_objects"][0]
        assert first["approach_date"] == "2025-10-12"
        assert isinstance(first["enhanced_metrics"]["energy_category"], str)

    def test_window_is_validated_offline(self, offline_service):
        with pytest.raises(ValueError):
            offline_service.assess_feed(date(2025, 1, 1), date(2025, 2, 1))

    def test_live_feed(self):
        feed = MockDataManager().feed(DAY, DAY)
        session = FakeSession({"/feed": FakeResponse(feed)})
        service = NEOFeedService(nasa_api_key="k", session=session)

        live_report = service.assess_feed(DAY, DAY)

        assert live_report.source == "nasa"
        assert live_report.total_count == 4
        assert len(session.calls) == 1

    def test_live_failure_falls_back_to_mock(self, failing_session, caplog):
        service = NEOFeedService(nasa_api_key="k", session=failing_session)
        with caplog.at_level(logging.WARNING, logger="neorisk.backend.feed_service"):
            fallback = service.assess_feed(DAY, DAY)
        assert fallback.source == "mock"
        assert fallback.total_count == 4
        assert "NASA feed fetch failed" in caplog.text


# -- single lookups ----------------------------------------------------------


class TestAssessNeo:

    def test_offline_lookup(self, offline_service):
        entry = offline_service.assess_neo("2099942")
        assert entry.observation.name.startswith("99942 Apophis")
        assert entry.assessment.risk_score == 60
        assert entry.nasa_jpl_url.endswith("2099942")

    def test_unknown_id(self, offline_service):
        with pytest.raises(NEONotFoundError):
            offline_service.assess_neo("does-not-exist")

    def test_malformed_lookup_propagates(self, offline_service):
        with pytest.raises(InvalidObservationError) as excinfo:
            offline_service.assess_neo(MALFORMED_ID)
        assert excinfo.value.field == "miss_distance_km"

    def test_live_lookup_falls_back(self, failing_session):
        service = NEOFeedService(nasa_api_key="k", session=failing_session)
        assert service.assess_neo("2101955").assessment.risk_score == 55


# -- close approaches / sorting / alerts -----------------------------------


class TestCloseApproaches:

    def test_distance_filter_and_order(self, offline_service):
        approaches = offline_service.close_approaches(DAY, DAY, distance_max_km=1_000_000)
        assert [item["id"] for item in approaches] == ["2099942", "3542519", "2101955"]
        assert approaches[0]["urgency_score"] == 80
        assert approaches[0]["miss_distance_au"] == pytest.approx(38012.0 / 149597870.7)

    def test_diameter_filter(self, offline_service):
        approaches = offline_service.close_approaches(DAY, DAY, diameter_min_m=500)
        assert [item["id"] for item in approaches] == ["2101955"]

    def test_hazardous_only(self, offline_service):
        approaches = offline_service.close_approaches(DAY, DAY, hazardous_only=True)
        assert "3726710" not in [item["id"] for item in approaches]
        assert len(approaches) == 3


class TestFilterAndSort:

    def test_sort_by_risk_score(self, report):
        ordered = NEOFeedService.filter_and_sort(report.entries, sort_by="risk_score")
        assert _ids(ordered) == ["3542519", "2099942", "2101955", "3726710"]

    def test_sort_by_velocity(self, report):
        ordered = NEOFeedService.filter_and_sort(report.entries, sort_by="velocity")
        assert _ids(ordered) == ["3542519", "3726710", "2101955", "2099942"]

    def test_unknown_sort_uses_miss_distance(self, report):
        ordered = NEOFeedService.filter_and_sort(report.entries, sort_by="brightness")
        assert _ids(ordered)[0] == "2099942"
        assert _ids(ordered)[-1] == "3726710"

    def test_safe_filter(self, report):
        assert _ids(NEOFeedService.filter_and_sort(report.entries, hazard_filter="safe")) == ["3726710"]

    def test_bad_filter(self, report):
        with pytest.raises(ValueError):
            NEOFeedService.filter_and_sort(report.entries, hazard_filter="scary")


class TestAlerts:

    def test_default_thresholds(self, offline_service, report):
        alerts = offline_service.build_alerts(report.entries)
        assert sorted(alert.neo_id for alert in alerts) == ["2099942", "2101955", "3542519"]
        assert {alert.severity for alert in alerts} == {"critical"}
        assert alerts[0].message.startswith("CRITICAL:")

    def test_stricter_thresholds(self, report):
        strict = NEOFeedService(nasa_api_key="k", enable_live_apis=False, alert_risk_score=65, alert_torino_level=5)
        assert [alert.neo_id for alert in strict.build_alerts(report.entries)] == ["3542519"]

    @pytest.mark.parametrize("torino, score, severity", [
        (3, 0, "critical"),
        (1, 0, "high"),
        (0, 50, "medium"),
        (0, 49, "low"),
    ])
    def test_severity(self, torino, score, severity):
        assert alert_severity(torino, score) == severity


# -- statistics ------------------------------------------------------------


class TestPeriodStatistics:

    def test_month_offline(self, offline_service):
        stats = offline_service.period_statistics("month", today=date(2025, 3, 31))

        assert stats["start_date"] == "2025-02-28"
        assert stats["end_date"] == "2025-03-31"
        assert stats["total_objects"] == 32 * 4
        assert stats["hazardous_objects"] == 32 * 3
        assert list(stats["weekly_trends"]) == ["2025-02-28", "2025-03-07", "2025-03-14", "2025-03-21", "2025-03-28"]
        assert stats["weekly_trends"]["2025-02-28"]["count"] == 28
        assert stats["weekly_trends"]["2025-03-28"]["count"] == 16
        assert stats["weekly_trends"]["2025-03-07"]["avg_distance_km"] == pytest.approx(2227003.0)
        assert stats["average_velocity_kms"] == pytest.approx(13.9825)

    def test_unknown_period_defaults_to_year(self, offline_service):
        stats = offline_service.period_statistics("fortnight", today=date(2024, 2, 29))
        assert stats["period"] == "year"
        assert stats["start_date"] == "2023-02-28"

    def test_failed_windows_are_skipped(self, failing_session, caplog):
        service = NEOFeedService(nasa_api_key="k", session=failing_session)
        with caplog.at_level(logging.WARNING, logger="neorisk.backend.feed_service"):
            stats = service.period_statistics("month", today=date(2025, 3, 31))

        assert stats["total_objects"] == 0
        assert stats["average_distance_km"] == 0.0
        assert stats["weekly_trends"] == {}
        assert len(failing_session.calls) == 5
        assert "Skipping statistics window" in caplog.text


class TestHealthSnapshot:

    def test_offline(self, offline_service):
        snapshot = offline_service.get_health_snapshot()
        assert snapshot["status"] == "ok"
        assert snapshot["services"]["nasa_neows_api"]["status"] == "disabled"

    def test_live_ok(self):
        session = FakeSession({"/neo/3542519": FakeResponse({"id": "3542519"})})
        service = NEOFeedService(nasa_api_key="k", session=session)
        assert service.get_health_snapshot()["status"] == "ok"

    def test_live_degraded(self, failing_session):
        service = NEOFeedService(nasa_api_key="k", session=failing_session)
        assert service.get_health_snapshot()["status"] == "degraded"


class TestBuckets:

    def test_risk_boundaries(self):
        assert risk_distribution([19, 20, 39, 40, 69, 70]) == {"low": 1, "medium": 2, "high": 2, "critical": 1}

    def test_size_boundaries(self):
        assert size_distribution([49.9, 50, 499, 500, 999, 1000]) == {"small": 1, "medium": 2, "large": 2, "huge": 1}

    def test_distance_boundaries(self):
        assert distance_categories([999_999, 1e6, 5e6, 1e7]) == {
            "very_close": 1, "close": 1, "moderate": 1, "distant": 1,
        }

    def test_summary_of_nothing(self):
        summary = summarise_observations([])
        assert summary["total_objects"] == 0
        assert summary["average_diameter_m"] == 0.0


class TestMalformedLiveRecords:

    @pytest.mark.parametrize("mutate", [
        lambda neo: neo["estimated_diameter"].update(meters="240.2"),
        lambda neo: neo["close_approach_data"][0].update(relative_velocity="21.5"),
        lambda neo: neo.update(close_approach_data={"0": neo["close_approach_data"][0]}),
        lambda neo: neo["close_approach_data"][0]["miss_distance"].update(kilometers=10**400),
    ], ids=["meters-string", "velocity-string", "approaches-dict", "distance-overflow"])
    def test_bad_record_is_skipped(self, mutate):
        feed = MockDataManager().feed(DAY, DAY)
        records = feed["near_earth_objects"][DAY.isoformat()]
        mutate(records[0])
        service = NEOFeedService(nasa_api_key="k", session=FakeSession({"/feed": FakeResponse(feed)}))

        live_report = service.assess_feed(DAY, DAY)

        assert live_report.source == "nasa"
        assert live_report.total_count == 3
        assert live_report.skipped_ids == ("3542519", MALFORMED_ID)

    def test_non_object_record_is_skipped(self):
        feed = MockDataManager().feed(DAY, DAY)
        feed["near_earth_objects"][DAY.isoformat()].insert(0, "garbage")
        service = NEOFeedService(nasa_api_key="k", session=FakeSession({"/feed": FakeResponse(feed)}))

        live_report = service.assess_feed(DAY, DAY)

        assert live_report.total_count == 4
        assert live_report.skipped_ids == ("?", MALFORMED_ID)

    def test_statistics_survive_bad_record(self):
        feed = MockDataManager().feed(DAY, DAY)
        feed["near_earth_objects"][DAY.isoformat()][0]["close_approach_data"] = {"0": {}}
        service = NEOFeedService(nasa_api_key="k", session=FakeSession({"/feed": FakeResponse(feed)}))

        stats = service.period_statistics("month", today=date(2025, 3, 31))

        assert stats["total_objects"] == 5 * 3
