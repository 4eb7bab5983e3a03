from __future__ import annotations

from typing import Optional

from sqlalchemy import and_, select
from sqlalchemy.engine import Engine

from common.schema import devices, sensors

from ..domain import SensorIdentity
from .interfaces import SensorStore


def _identity_select():
    return select(
        sensors.c.id,
        sensors.c.serial_number,
        sensors.c.type,
        sensors.c.device_id,
        devices.c.farm_id,
        sensors.c.name,
        sensors.c.unit,
    ).select_from(sensors.outerjoin(devices, devices.c.id == sensors.c.device_id))


def _to_identity(row) -> SensorIdentity:
    return SensorIdentity(
        sensor_id=str(row.id),
        serial_number=str(row.serial_number),
        sensor_type=str(row.type),
        device_id=str(row.device_id) if row.device_id is not None else None,
        farm_id=str(row.farm_id) if row.farm_id is not None else None,
        name=row.name,
        unit=row.unit,
    )


class SqlSensorStore(SensorStore):
    """Lectura de sensores desde las tablas del CRUD externo."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def find_by_id(self, sensor_id: str) -> Optional[SensorIdentity]:
        with self._engine.connect() as conn:
            row = conn.execute(_identity_select().where(sensors.c.id == sensor_id)).fetchone()
        return _to_identity(row) if row else None

    def find_by_serial_number(self, serial_number: str) -> Optional[SensorIdentity]:
        with self._engine.connect() as conn:
            row = conn.execute(
                _identity_select().where(sensors.c.serial_number == serial_number)
            ).fetchone()
        return _to_identity(row) if row else None

    def list_all(self, page: int = 1, limit: int = 100) -> list[SensorIdentity]:
        offset = (max(page, 1) - 1) * limit
        with self._engine.connect() as conn:
            rows = conn.execute(
                _identity_select().order_by(sensors.c.id).offset(offset).limit(limit)
            ).fetchall()
        return [_to_identity(r) for r in rows]

    def list_active_for_farm(self, farm_id: str) -> list[SensorIdentity]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                _identity_select()
                .where(
                    and_(
                        devices.c.farm_id == farm_id,
                        devices.c.is_active.is_(True),
                        sensors.c.is_active.is_(True),
                    )
                )
                .order_by(sensors.c.type, sensors.c.id)
            ).fetchall()
        return [_to_identity(r) for r in rows]
