"""Agregación del dashboard de una granja.

Promedia el último valor de cada sensor activo por tipo y lo clasifica contra
las bandas de la granja (materializando las de defecto si aún no existen).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..classification.engine import classify, sort_bands
from ..classification.models import SeverityResult, ThresholdBand
from ..classification.service import ThresholdService
from ..domain import SensorIdentity, SensorReading
from ..repository.interfaces import ReadingStore, SensorStore

logger = logging.getLogger(__name__)

# Escala del gauge cuando no hay bandas acotadas ni datos
GAUGE_MIN_FALLBACK = 0.0
GAUGE_MAX_FALLBACK = 100.0


@dataclass(frozen=True)
class ThresholdRange:
    severity: str
    min: Optional[float]
    max: Optional[float]
    color: str
    label: Optional[str]


@dataclass
class SensorTypeSummary:
    sensor_type: str
    average: Optional[float]
    unit: str
    sensors_count: int
    sensors_with_data_count: int
    values: list[float]
    severity: str
    severity_color: str
    severity_label: str
    notification_enabled: bool
    threshold_ranges: list[ThresholdRange]
    min_value: float
    max_value: float


@dataclass
class DashboardSummary:
    farm_id: str
    latest_timestamp: Optional[datetime]
    active_sensors_count: int
    averages: dict[str, SensorTypeSummary] = field(default_factory=dict)


@dataclass(frozen=True)
class SeriesPoint:
    time: datetime
    value: float


@dataclass
class SensorSeries:
    sensor_type: str
    data: list[SeriesPoint]


class DashboardService:

    def __init__(self, sensors: SensorStore, readings: ReadingStore, thresholds: ThresholdService):
        self._sensors = sensors
        self._readings = readings
        self._thresholds = thresholds

    def summary(self, farm_id: str) -> DashboardSummary:
        sensors = self._sensors.list_active_for_farm(farm_id)
        if not sensors:
            return DashboardSummary(farm_id=farm_id, latest_timestamp=None, active_sensors_count=0)

        latest: dict[str, SensorReading] = {}
        for sensor in sensors:
            reading = self._readings.latest_for(sensor.sensor_id)
            if reading is not None:
                latest[sensor.sensor_id] = reading

        by_type: dict[str, list[SensorIdentity]] = defaultdict(list)
        for sensor in sensors:
            by_type[sensor.sensor_type].append(sensor)

        averages = {
            sensor_type: self._summarize_type(farm_id, sensor_type, group, latest)
            for sensor_type, group in by_type.items()
        }
        latest_timestamp = max((r.timestamp for r in latest.values()), default=None)

        logger.debug(
            "[DASHBOARD] farm=%s sensors=%d types=%d with_data=%d",
            farm_id, len(sensors), len(averages), len(latest),
        )
        return DashboardSummary(
            farm_id=farm_id,
            latest_timestamp=latest_timestamp,
            active_sensors_count=len(sensors),
            averages=averages,
        )

    def series(self, farm_id: str, hours: int = 24, sensor_type: Optional[str] = None) -> list[SensorSeries]:
        """Promedios horarios por tipo de sensor en las últimas `hours` horas."""
        sensors = self._sensors.list_active_for_farm(farm_id)
        if sensor_type:
            sensors = [s for s in sensors if s.sensor_type.lower() == sensor_type.lower()]

        ids_by_type: dict[str, list[str]] = defaultdict(list)
        for sensor in sensors:
            ids_by_type[sensor.sensor_type].append(sensor.sensor_id)

        end = datetime.now(timezone.utc)
        start = end - timedelta(hours=hours)
        return [
            SensorSeries(
                sensor_type=type_,
                data=hourly_averages(self._readings.query_by_time_range(ids, start, end)),
            )
            for type_, ids in ids_by_type.items()
        ]

    def _summarize_type(
        self,
        farm_id: str,
        sensor_type: str,
        sensors: list[SensorIdentity],
        latest: dict[str, SensorReading],
    ) -> SensorTypeSummary:
        values: list[float] = []
        unit = ""
        for sensor in sensors:
            reading = latest.get(sensor.sensor_id)
            if reading is None:
                continue
            values.append(reading.value)
            if not unit and sensor.unit:
                unit = sensor.unit

        average = sum(values) / len(values) if values else None

        if average is None:
            result = SeverityResult.unknown(label="No Data")
            ranges: list[ThresholdRange] = []
        else:
            bands = self._thresholds.ensure_bands_exist(farm_id, sensor_type)
            result = classify(average, bands)
            ranges = threshold_ranges(bands)

        min_value, max_value = gauge_bounds(ranges, values)
        return SensorTypeSummary(
            sensor_type=sensor_type,
            average=average,
            unit=unit,
            sensors_count=len(sensors),
            sensors_with_data_count=len(values),
            values=values,
            severity=result.severity,
            severity_color=result.color,
            severity_label=result.label,
            notification_enabled=result.notification_enabled,
            threshold_ranges=ranges,
            min_value=min_value,
            max_value=max_value,
        )


def threshold_ranges(bands: list[ThresholdBand]) -> list[ThresholdRange]:
    return [
        ThresholdRange(
            severity=band.severity_level,
            min=band.min_value,
            max=band.max_value,
            color=band.color_code,
            label=band.label,
        )
        for band in sort_bands(bands)
    ]


def gauge_bounds(ranges: list[ThresholdRange], values: list[float]) -> tuple[float, float]:
    """Escala del gauge: límites finitos de las bandas, si no los datos, si no 0..100."""
    mins = [r.min for r in ranges if r.min is not None]
    maxs = [r.max for r in ranges if r.max is not None]

    if mins:
        low = min(mins)
    elif values:
        low = min(values)
    else:
        low = GAUGE_MIN_FALLBACK

    if maxs:
        high = max(maxs)
    elif values:
        high = max(values)
    else:
        high = GAUGE_MAX_FALLBACK
    return low, high


def hourly_averages(readings: list[SensorReading]) -> list[SeriesPoint]:
    buckets: dict[datetime, list[float]] = defaultdict(list)
    for reading in readings:
        hour = reading.timestamp.replace(minute=0, second=0, microsecond=0)
        buckets[hour].append(reading.value)
    return [
        SeriesPoint(time=hour, value=sum(vals) / len(vals))
        for hour, vals in sorted(buckets.items())
    ]
