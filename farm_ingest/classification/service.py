"""Servicio de umbrales por granja.

- Materializa las bandas por defecto la primera vez que se consulta un par
  (granja, tipo), de modo que cada granja termina con su copia editable.
- Reemplaza el conjunto completo de bandas de un par en una sola transacción:
  un lector ve el conjunto viejo o el nuevo, nunca ninguno.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Iterable, Optional, Sequence

from sqlalchemy.exc import IntegrityError

from ..errors import BandConfigurationError
from ..metrics import THRESHOLD_REPLACEMENTS
from ..repository.thresholds import ThresholdRepository
from .defaults import canonical_sensor_type, default_bands
from .engine import classify, sort_bands
from .models import SEVERITY_PRIORITY, SeverityResult, ThresholdBand

logger = logging.getLogger(__name__)


class ThresholdService:

    def __init__(self, repository: ThresholdRepository):
        self._repo = repository

    def get_thresholds_by_farm(self, farm_id: str) -> list[ThresholdBand]:
        return self._repo.get_by_farm(farm_id)

    def get_default_thresholds(self, sensor_type: str) -> list[ThresholdBand]:
        return default_bands(sensor_type)

    def ensure_bands_exist(self, farm_id: str, sensor_type: str) -> list[ThresholdBand]:
        """Bandas persistidas del par; si no hay, persiste las de defecto."""
        sensor_type = canonical_sensor_type(sensor_type)
        existing = self._repo.get_for(farm_id, sensor_type)
        if existing:
            return existing

        bands = [band.scoped_to(farm_id, sensor_type) for band in default_bands(sensor_type)]
        try:
            with self._repo.engine.begin() as conn:
                stored = self._repo.insert_bands(conn, bands)
        except IntegrityError:
            # Otro proceso las materializó primero
            logger.info("[THRESHOLDS] Defaults for farm=%s type=%s created concurrently", farm_id, sensor_type)
            return self._repo.get_for(farm_id, sensor_type)

        logger.info(
            "[THRESHOLDS] Materialized %d default bands for farm=%s type=%s",
            len(stored), farm_id, sensor_type,
        )
        return sort_bands(stored)

    def replace_bands(
        self,
        farm_id: str,
        sensor_type: str,
        new_bands: Sequence[ThresholdBand],
    ) -> list[ThresholdBand]:
        """Reemplaza todas las bandas de (farm_id, sensor_type).

        range_order de cada banda = cantidad de bandas anteriores en la lista
        con la misma severidad, salvo que venga explícito. Se respeta el orden
        del llamador dentro de cada severidad.

        Raises:
            BandConfigurationError: lista inválida; no se toca la BD.
        """
        sensor_type = canonical_sensor_type(sensor_type)
        bands = assign_range_order(new_bands, farm_id=farm_id, sensor_type=sensor_type)
        errors = validate_bands(bands)
        if errors:
            THRESHOLD_REPLACEMENTS.labels(status="rejected").inc()
            logger.warning(
                "[THRESHOLDS] Rejected band set for farm=%s type=%s: %s",
                farm_id, sensor_type, "; ".join(errors),
            )
            raise BandConfigurationError("invalid band configuration", errors=errors)

        try:
            with self._repo.engine.begin() as conn:
                deleted = self._repo.delete_for(conn, farm_id, sensor_type)
                stored = self._repo.insert_bands(conn, bands)
        except Exception:
            THRESHOLD_REPLACEMENTS.labels(status="failed").inc()
            logger.exception("[THRESHOLDS] Replace failed for farm=%s type=%s; rolled back", farm_id, sensor_type)
            raise

        THRESHOLD_REPLACEMENTS.labels(status="ok").inc()
        logger.info(
            "[THRESHOLDS] Replaced bands farm=%s type=%s deleted=%d inserted=%d",
            farm_id, sensor_type, deleted, len(stored),
        )
        return sort_bands(stored)

    def classify_for_farm(self, farm_id: str, sensor_type: str, value: float) -> SeverityResult:
        return classify(value, self.ensure_bands_exist(farm_id, sensor_type))


def assign_range_order(
    bands: Iterable[ThresholdBand],
    *,
    farm_id: str,
    sensor_type: str,
) -> list[ThresholdBand]:
    result = []
    seen: dict[str, int] = {}
    for band in bands:
        same_severity_index = seen.get(band.severity_level, 0)
        seen[band.severity_level] = same_severity_index + 1
        range_order = band.range_order if band.range_order is not None else same_severity_index
        result.append(
            replace(
                band,
                id=None,
                farm_id=farm_id,
                sensor_type=sensor_type,
                range_order=range_order,
            )
        )
    return result


def validate_bands(bands: Sequence[ThresholdBand]) -> list[str]:
    errors: list[str] = []
    if not bands:
        # Un par (granja, tipo) nunca queda sin bandas
        errors.append("at least one band is required")
    keys: set[tuple[str, int]] = set()
    for i, band in enumerate(bands):
        if band.severity_level not in SEVERITY_PRIORITY:
            errors.append(f"band {i}: unknown severity {band.severity_level!r}")
        for name in ("min_value", "max_value"):
            bound: Optional[float] = getattr(band, name)
            if bound is not None and not math.isfinite(bound):
                errors.append(f"band {i}: {name} must be finite")
        if (
            band.min_value is not None
            and band.max_value is not None
            and band.min_value > band.max_value
        ):
            errors.append(f"band {i}: min_value {band.min_value} > max_value {band.max_value}")
        if band.range_order < 0:
            errors.append(f"band {i}: range_order must be >= 0")
        key = (band.severity_level, band.range_order)
        if key in keys:
            errors.append(
                f"band {i}: duplicate ({band.severity_level}, range_order={band.range_order})"
            )
        keys.add(key)
    return errors
