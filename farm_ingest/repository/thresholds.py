"""Persistencia de bandas de umbral en sensor_thresholds."""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import and_, case, delete, func, insert, select
from sqlalchemy.engine import Connection, Engine

from common.schema import sensor_thresholds

from ..classification.models import SEVERITY_PRIORITY, ThresholdBand

_severity_rank = case(SEVERITY_PRIORITY, value=sensor_thresholds.c.severity_level, else_=999)


def _same_type(sensor_type: str):
    return func.lower(sensor_thresholds.c.sensor_type) == sensor_type.lower()


def _to_band(row) -> ThresholdBand:
    return ThresholdBand(
        id=str(row.id),
        farm_id=str(row.farm_id),
        sensor_type=row.sensor_type,
        severity_level=row.severity_level,
        range_order=int(row.range_order),
        min_value=float(row.min_value) if row.min_value is not None else None,
        max_value=float(row.max_value) if row.max_value is not None else None,
        notification_enabled=bool(row.notification_enabled),
        color_code=row.color_code,
        label=row.label,
    )


class ThresholdRepository:
    """Acceso a sensor_thresholds.

    delete_for() e insert_bands() reciben la conexión para poder componerse en
    una única transacción (ver ThresholdService.replace_bands).
    """

    def __init__(self, engine: Engine):
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def get_by_farm(self, farm_id: str) -> list[ThresholdBand]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(sensor_thresholds)
                .where(sensor_thresholds.c.farm_id == farm_id)
                .order_by(
                    sensor_thresholds.c.sensor_type,
                    _severity_rank,
                    sensor_thresholds.c.range_order,
                )
            ).fetchall()
        return [_to_band(r) for r in rows]

    def get_for(self, farm_id: str, sensor_type: str) -> list[ThresholdBand]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(sensor_thresholds)
                .where(
                    and_(
                        sensor_thresholds.c.farm_id == farm_id,
                        _same_type(sensor_type),
                    )
                )
                .order_by(_severity_rank, sensor_thresholds.c.range_order)
            ).fetchall()
        return [_to_band(r) for r in rows]

    def delete_for(self, conn: Connection, farm_id: str, sensor_type: str) -> int:
        result = conn.execute(
            delete(sensor_thresholds).where(
                and_(
                    sensor_thresholds.c.farm_id == farm_id,
                    _same_type(sensor_type),
                )
            )
        )
        return int(result.rowcount or 0)

    def insert_bands(self, conn: Connection, bands: Sequence[ThresholdBand]) -> list[ThresholdBand]:
        if not bands:
            return []
        now = datetime.now(timezone.utc)
        stored = [band if band.id else _with_id(band) for band in bands]
        conn.execute(
            insert(sensor_thresholds),
            [
                {
                    "id": band.id,
                    "farm_id": band.farm_id,
                    "sensor_type": band.sensor_type,
                    "severity_level": band.severity_level,
                    "range_order": band.range_order,
                    "min_value": band.min_value,
                    "max_value": band.max_value,
                    "notification_enabled": band.notification_enabled,
                    "color_code": band.color_code,
                    "label": band.label,
                    "created_at": now,
                    "updated_at": now,
                }
                for band in stored
            ],
        )
        return stored


def _with_id(band: ThresholdBand) -> ThresholdBand:
    return replace(band, id=str(uuid.uuid4()))
