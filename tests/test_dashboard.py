"""Tests de la agregación del dashboard."""

from datetime import datetime, timedelta, timezone

import pytest

from farm_ingest.classification import ThresholdBand
from farm_ingest.queries.dashboard import (
    DashboardService,
    ThresholdRange,
    gauge_bounds,
)

from .conftest import FARM_ID


@pytest.fixture
def dashboard(sensor_store, reading_store, threshold_service) -> DashboardService:
    return DashboardService(sensor_store, reading_store, threshold_service)


class TestSummary:

    def test_average_of_latest_values_classified(self, dashboard, reading_store):
        now = datetime.now(timezone.utc)
        reading_store.insert("sensor-ph", 7.0, now - timedelta(hours=2))
        latest = reading_store.insert("sensor-ph", 8.0, now - timedelta(hours=1))

        summary = dashboard.summary(FARM_ID)

        assert summary.active_sensors_count == 2
        assert summary.latest_timestamp == latest.timestamp
        ph = summary.averages["pH"]
        assert ph.average == 8.0
        assert ph.values == [8.0]
        assert ph.unit == "pH"
        assert ph.sensors_with_data_count == 1
        assert ph.severity == "normal"
        assert ph.severity_label == "Optimal"
        assert [r.severity for r in ph.threshold_ranges] == [
            "critical", "critical", "warning", "warning", "normal",
        ]
        assert (ph.min_value, ph.max_value) == (7.6, 8.4)

    def test_type_without_data(self, dashboard, threshold_repo):
        summary = dashboard.summary(FARM_ID)

        do = summary.averages["DO"]
        assert do.average is None
        assert do.severity == "unknown"
        assert do.severity_label == "No Data"
        assert do.threshold_ranges == []
        assert (do.min_value, do.max_value) == (0.0, 100.0)
        # Sin datos no se materializan bandas
        assert threshold_repo.get_for(FARM_ID, "DO") == []

    def test_bands_edited_with_other_spelling_apply(self, dashboard, reading_store, threshold_service):
        threshold_service.replace_bands(FARM_ID, "ph", [
            ThresholdBand(sensor_type="ph", severity_level="critical", label="Closed"),
        ])
        reading_store.insert("sensor-ph", 8.0)

        ph = dashboard.summary(FARM_ID).averages["pH"]

        assert ph.severity == "critical"
        assert ph.severity_label == "Closed"

    def test_series_type_filter_ignores_case(self, dashboard):
        assert [s.sensor_type for s in dashboard.series(FARM_ID, sensor_type="ph")] == ["pH"]

    def test_unknown_farm_is_empty(self, dashboard):
        summary = dashboard.summary("nope")
        assert summary.active_sensors_count == 0
        assert summary.averages == {}
        assert summary.latest_timestamp is None


class TestSeries:

    def test_hourly_averages(self, dashboard, reading_store):
        now = datetime.now(timezone.utc)
        base_hour = (now - timedelta(hours=3)).replace(minute=0, second=0, microsecond=0)
        reading_store.insert("sensor-ph", 7.0, base_hour + timedelta(minutes=10))
        reading_store.insert("sensor-ph", 8.0, base_hour + timedelta(minutes=40))
        reading_store.insert("sensor-ph", 9.0, base_hour + timedelta(hours=2, minutes=5))
        reading_store.insert("sensor-ph", 1.0, now - timedelta(hours=48))

        series = {s.sensor_type: s for s in dashboard.series(FARM_ID, hours=24)}

        assert set(series) == {"pH", "DO"}
        points = series["pH"].data
        assert [(p.time, p.value) for p in points] == [
            (base_hour, 7.5),
            (base_hour + timedelta(hours=2), 9.0),
        ]
        assert series["DO"].data == []

    def test_type_filter(self, dashboard):
        series = dashboard.series(FARM_ID, hours=24, sensor_type="DO")
        assert [s.sensor_type for s in series] == ["DO"]


class TestGaugeBounds:

    def test_finite_band_bounds(self):
        ranges = [
            ThresholdRange("critical", None, 10, "#f44336", None),
            ThresholdRange("normal", 5, 20, "#4caf50", None),
        ]
        assert gauge_bounds(ranges, [1.0]) == (5, 20)

    def test_falls_back_to_values(self):
        ranges = [ThresholdRange("normal", None, None, "#4caf50", None)]
        assert gauge_bounds(ranges, [3.0, 9.0]) == (3.0, 9.0)

    def test_falls_back_to_fixed_scale(self):
        assert gauge_bounds([], []) == (0.0, 100.0)
