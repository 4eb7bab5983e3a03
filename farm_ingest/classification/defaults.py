"""Bandas por defecto por tipo de sensor.

Tabla de datos: agregar un tipo de sensor es agregar una entrada aquí.
La clave se compara sin distinguir mayúsculas. Tipos desconocidos reciben
FALLBACK_BANDS (una única banda normal sin límites).

Vocabulario canónico: TempA/TempB/TempC, pH, DO, Salinity, Ammonia,
Turbidity, Nitrite.
"""

from __future__ import annotations

from .models import SeverityLevel, ThresholdBand

CRITICAL_COLOR = "#f44336"
WARNING_COLOR = "#ffeb3b"
NORMAL_COLOR = "#4caf50"

_COLORS = {
    SeverityLevel.CRITICAL: CRITICAL_COLOR,
    SeverityLevel.WARNING: WARNING_COLOR,
    SeverityLevel.NORMAL: NORMAL_COLOR,
}

# (severidad, min, max, etiqueta), en el orden en que se muestran
_TEMPERATURE = [
    (SeverityLevel.CRITICAL, None, 24.9, "Too Cold"),
    (SeverityLevel.WARNING, 25.0, 27.9, "Cool"),
    (SeverityLevel.NORMAL, 28.0, 32.0, "Optimal"),
    (SeverityLevel.WARNING, 32.1, 33.0, "Warm"),
    (SeverityLevel.CRITICAL, 33.1, None, "Too Hot"),
]

DEFAULT_BAND_TABLE = {
    "tempa": _TEMPERATURE,
    "tempb": _TEMPERATURE,
    "tempc": _TEMPERATURE,
    "ph": [
        (SeverityLevel.CRITICAL, None, 7.5, "Critical Acidic"),
        (SeverityLevel.WARNING, 7.6, 7.8, "Good Low"),
        (SeverityLevel.NORMAL, 7.9, 8.2, "Optimal"),
        (SeverityLevel.WARNING, 8.3, 8.4, "Good High"),
        (SeverityLevel.CRITICAL, 8.5, None, "Critical Basic"),
    ],
    # Oxígeno disuelto, mg/L
    "do": [
        (SeverityLevel.CRITICAL, None, 3.9, "Critical Low"),
        (SeverityLevel.WARNING, 4.0, 4.9, "Low"),
        (SeverityLevel.NORMAL, 5.0, None, "Optimal"),
    ],
    # ppt
    "salinity": [
        (SeverityLevel.CRITICAL, None, 4.9, "Too Fresh"),
        (SeverityLevel.WARNING, 5.0, 9.9, "Low"),
        (SeverityLevel.NORMAL, 10.0, 25.0, "Optimal"),
        (SeverityLevel.WARNING, 25.1, 35.0, "High"),
        (SeverityLevel.CRITICAL, 35.1, None, "Too Saline"),
    ],
    # NH3 total, mg/L
    "ammonia": [
        (SeverityLevel.NORMAL, None, 0.1, "Safe"),
        (SeverityLevel.WARNING, 0.11, 0.5, "Elevated"),
        (SeverityLevel.CRITICAL, 0.51, None, "Toxic"),
    ],
    # NTU
    "turbidity": [
        (SeverityLevel.NORMAL, None, 50.0, "Clear"),
        (SeverityLevel.WARNING, 50.1, 200.0, "Turbid"),
        (SeverityLevel.CRITICAL, 200.1, None, "Very Turbid"),
    ],
    # mg/L
    "nitrite": [
        (SeverityLevel.NORMAL, None, 0.25, "Safe"),
        (SeverityLevel.WARNING, 0.26, 1.0, "Elevated"),
        (SeverityLevel.CRITICAL, 1.01, None, "Toxic"),
    ],
}

# Grafía canónica de cada tipo, indexada en minúsculas
CANONICAL_SENSOR_TYPES = {
    name.lower(): name
    for name in ("TempA", "TempB", "TempC", "pH", "DO", "Salinity", "Ammonia", "Turbidity", "Nitrite")
}

FALLBACK_BANDS = [
    (SeverityLevel.NORMAL, None, None, "Normal"),
]


def canonical_sensor_type(sensor_type: str) -> str:
    """"ph", "PH" y "pH" son el mismo tipo; devuelve su grafía canónica."""
    stripped = sensor_type.strip()
    return CANONICAL_SENSOR_TYPES.get(stripped.lower(), stripped)


def default_bands(sensor_type: str) -> list[ThresholdBand]:
    """Bandas por defecto para `sensor_type`, sin granja asignada.

    range_order = posición entre las bandas hermanas de la misma severidad.
    """
    sensor_type = canonical_sensor_type(sensor_type)
    config = DEFAULT_BAND_TABLE.get(sensor_type.lower(), FALLBACK_BANDS)

    seen: dict[SeverityLevel, int] = {}
    bands = []
    for severity, min_value, max_value, label in config:
        range_order = seen.get(severity, 0)
        seen[severity] = range_order + 1
        bands.append(
            ThresholdBand(
                sensor_type=sensor_type,
                severity_level=severity.value,
                min_value=min_value,
                max_value=max_value,
                range_order=range_order,
                notification_enabled=True,
                color_code=_COLORS[severity],
                label=label,
            )
        )
    return bands
