"""Motor de clasificación por bandas.

Las bandas se evalúan por severidad (critical → warning → normal) y, dentro
de la misma severidad, por range_order. Gana la primera banda que contiene el
valor. Con rangos mal configurados que se solapan, manda la severidad y no el
ancho del rango.
"""

from __future__ import annotations

from typing import Iterable

from .models import SEVERITY_PRIORITY, SeverityResult, ThresholdBand

# Severidades no reconocidas se evalúan al final
_UNRANKED = 999


def band_sort_key(band: ThresholdBand) -> tuple[int, int]:
    return (SEVERITY_PRIORITY.get(band.severity_level, _UNRANKED), band.range_order or 0)


def sort_bands(bands: Iterable[ThresholdBand]) -> list[ThresholdBand]:
    return sorted(bands, key=band_sort_key)


def classify(value: float, bands: Iterable[ThresholdBand]) -> SeverityResult:
    """Clasifica `value`. Total: nunca lanza; sin coincidencia devuelve unknown."""
    for band in sort_bands(bands):
        if band.contains(value):
            return SeverityResult(
                severity=band.severity_level,
                color=band.color_code,
                label=band.label or band.severity_level.title(),
                notification_enabled=band.notification_enabled,
            )
    return SeverityResult.unknown()
