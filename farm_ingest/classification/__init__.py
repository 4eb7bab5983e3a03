"""Clasificación de lecturas por bandas de severidad.

ThresholdService (persistencia) vive en service.py y se importa desde ahí.
"""

from .defaults import (
    CANONICAL_SENSOR_TYPES,
    DEFAULT_BAND_TABLE,
    FALLBACK_BANDS,
    canonical_sensor_type,
    default_bands,
)
from .engine import band_sort_key, classify, sort_bands
from .models import (
    SEVERITY_PRIORITY,
    UNKNOWN_SEVERITY,
    SeverityLevel,
    SeverityResult,
    ThresholdBand,
)

__all__ = [
    "CANONICAL_SENSOR_TYPES",
    "DEFAULT_BAND_TABLE",
    "FALLBACK_BANDS",
    "SEVERITY_PRIORITY",
    "UNKNOWN_SEVERITY",
    "SeverityLevel",
    "SeverityResult",
    "ThresholdBand",
    "band_sort_key",
    "canonical_sensor_type",
    "classify",
    "default_bands",
    "sort_bands",
]
