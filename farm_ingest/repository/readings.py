from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.engine import Engine

from common.schema import sensor_readings

from ..domain import SensorReading
from .interfaces import ReadingStore

logger = logging.getLogger(__name__)


def ensure_utc(dt: datetime) -> datetime:
    # SQLite devuelve datetimes naive; se guardan siempre en UTC.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _to_reading(row) -> SensorReading:
    return SensorReading(
        id=str(row.id),
        sensor_id=str(row.sensor_id),
        value=float(row.value),
        timestamp=ensure_utc(row.timestamp),
    )


class SqlReadingStore(ReadingStore):
    """Persistencia de lecturas en sensor_readings."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def insert(self, sensor_id: str, value: float, timestamp: Optional[datetime] = None) -> SensorReading:
        reading = SensorReading(
            id=str(uuid.uuid4()),
            sensor_id=sensor_id,
            value=float(value),
            timestamp=ensure_utc(timestamp or datetime.now(timezone.utc)),
        )
        with self._engine.begin() as conn:
            conn.execute(
                insert(sensor_readings).values(
                    id=reading.id,
                    sensor_id=reading.sensor_id,
                    value=reading.value,
                    timestamp=reading.timestamp,
                )
            )
        return reading

    def query_by_time_range(
        self, sensor_ids: Sequence[str], start: datetime, end: datetime
    ) -> list[SensorReading]:
        if not sensor_ids:
            return []
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(sensor_readings)
                .where(sensor_readings.c.sensor_id.in_(list(sensor_ids)))
                .where(sensor_readings.c.timestamp.between(ensure_utc(start), ensure_utc(end)))
                .order_by(sensor_readings.c.timestamp.asc())
            ).fetchall()
        return [_to_reading(r) for r in rows]

    def latest_for(self, sensor_id: str) -> Optional[SensorReading]:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(sensor_readings)
                .where(sensor_readings.c.sensor_id == sensor_id)
                .order_by(sensor_readings.c.timestamp.desc())
                .limit(1)
            ).fetchone()
        return _to_reading(row) if row else None

    def delete_older_than(self, cutoff: datetime) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(
                delete(sensor_readings).where(sensor_readings.c.timestamp < ensure_utc(cutoff))
            )
        logger.info("[READINGS] Deleted %d readings older than %s", result.rowcount, cutoff.isoformat())
        return int(result.rowcount or 0)
