"""Interfaces de los stores externos consumidos por el pipeline.

El CRUD de farms/devices/sensors vive fuera de este servicio; el pipeline solo
necesita estas operaciones. Las implementaciones SQL están en sensors.py y
readings.py; los tests pueden inyectar dobles.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Sequence

from ..domain import SensorIdentity, SensorReading


class SensorStore(ABC):

    @abstractmethod
    def find_by_id(self, sensor_id: str) -> Optional[SensorIdentity]:
        pass

    @abstractmethod
    def find_by_serial_number(self, serial_number: str) -> Optional[SensorIdentity]:
        pass

    @abstractmethod
    def list_all(self, page: int = 1, limit: int = 100) -> list[SensorIdentity]:
        """Página `page` (desde 1) de todos los sensores, orden estable."""

    @abstractmethod
    def list_active_for_farm(self, farm_id: str) -> list[SensorIdentity]:
        """Sensores activos de dispositivos activos de la granja."""


class ReadingStore(ABC):

    @abstractmethod
    def insert(self, sensor_id: str, value: float, timestamp: Optional[datetime] = None) -> SensorReading:
        pass

    @abstractmethod
    def query_by_time_range(
        self, sensor_ids: Sequence[str], start: datetime, end: datetime
    ) -> list[SensorReading]:
        pass

    @abstractmethod
    def latest_for(self, sensor_id: str) -> Optional[SensorReading]:
        pass

    @abstractmethod
    def delete_older_than(self, cutoff: datetime) -> int:
        """Borra lecturas con timestamp < cutoff. Devuelve filas borradas."""
