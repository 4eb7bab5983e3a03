from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .classification.defaults import CRITICAL_COLOR, NORMAL_COLOR, WARNING_COLOR
from .classification.models import ThresholdBand

_SEVERITY_COLORS = {
    "critical": CRITICAL_COLOR,
    "warning": WARNING_COLOR,
    "normal": NORMAL_COLOR,
}


class ThresholdBandIn(BaseModel):
    severity_level: str
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    # None = posición entre las bandas de la misma severidad
    range_order: Optional[int] = None
    notification_enabled: bool = True
    color_code: Optional[str] = None
    label: Optional[str] = Field(default=None, max_length=100)

    def to_band(self, sensor_type: str) -> ThresholdBand:
        return ThresholdBand(
            sensor_type=sensor_type,
            severity_level=self.severity_level,
            min_value=self.min_value,
            max_value=self.max_value,
            range_order=self.range_order,
            notification_enabled=self.notification_enabled,
            color_code=self.color_code or _SEVERITY_COLORS.get(self.severity_level, NORMAL_COLOR),
            label=self.label,
        )


class ReplaceBandsIn(BaseModel):
    bands: List[ThresholdBandIn]


class ThresholdBandOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    farm_id: Optional[str] = None
    sensor_type: str
    severity_level: str
    range_order: Optional[int] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    notification_enabled: bool
    color_code: str
    label: Optional[str] = None


class SensorUpdatedIn(BaseModel):
    old_serial_number: Optional[str] = None


class SensorDeletedIn(BaseModel):
    serial_number: Optional[str] = None
    sensor_type: Optional[str] = None


class SubscriptionResult(BaseModel):
    sensor_id: str
    topics: List[str] = Field(default_factory=list)


class ThresholdRangeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    severity: str
    min: Optional[float] = None
    max: Optional[float] = None
    color: str
    label: Optional[str] = None


class SensorTypeSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sensor_type: str
    average: Optional[float] = None
    unit: str
    sensors_count: int
    sensors_with_data_count: int
    values: List[float]
    severity: str
    severity_color: str
    severity_label: str
    notification_enabled: bool
    threshold_ranges: List[ThresholdRangeOut]
    min_value: float
    max_value: float


class DashboardSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    farm_id: str
    latest_timestamp: Optional[datetime] = None
    active_sensors_count: int
    averages: Dict[str, SensorTypeSummaryOut] = Field(default_factory=dict)


class SeriesPointOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    time: datetime
    value: float


class SensorSeriesOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sensor_type: str
    data: List[SeriesPointOut]
