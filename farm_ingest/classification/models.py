"""Modelos de datos para la clasificación por bandas de severidad."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class SeverityLevel(str, Enum):
    """Severidad de una banda. `unknown` solo aparece en resultados."""

    CRITICAL = "critical"
    WARNING = "warning"
    NORMAL = "normal"


# Menor = se evalúa antes
SEVERITY_PRIORITY = {
    SeverityLevel.CRITICAL.value: 1,
    SeverityLevel.WARNING.value: 2,
    SeverityLevel.NORMAL.value: 3,
}

UNKNOWN_SEVERITY = "unknown"
UNKNOWN_COLOR = "#9e9e9e"
DEFAULT_COLOR = "#4caf50"


@dataclass(frozen=True)
class ThresholdBand:
    """Rango numérico asociado a una severidad para (granja, tipo de sensor).

    min_value/max_value None = sin límite por ese lado. range_order None = se
    asigna al persistir. range_order distingue
    varias bandas con la misma severidad (p.ej. "muy frío" y "muy caliente").
    """

    sensor_type: str
    severity_level: str
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    range_order: Optional[int] = None
    notification_enabled: bool = True
    color_code: str = DEFAULT_COLOR
    label: Optional[str] = None
    farm_id: Optional[str] = None
    id: Optional[str] = None

    def contains(self, value: float) -> bool:
        min_check = self.min_value is None or value >= self.min_value
        max_check = self.max_value is None or value <= self.max_value
        return min_check and max_check

    def scoped_to(self, farm_id: str, sensor_type: Optional[str] = None) -> "ThresholdBand":
        return replace(self, farm_id=farm_id, sensor_type=sensor_type or self.sensor_type, id=None)


@dataclass(frozen=True)
class SeverityResult:
    """Resultado de clasificar un valor contra un conjunto de bandas."""

    severity: str
    color: str
    label: str
    notification_enabled: bool

    @classmethod
    def unknown(cls, label: str = "Out of Range") -> "SeverityResult":
        return cls(
            severity=UNKNOWN_SEVERITY,
            color=UNKNOWN_COLOR,
            label=label,
            notification_enabled=False,
        )
