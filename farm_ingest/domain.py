"""Modelos de dominio compartidos por el pipeline de ingesta."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class SensorIdentity:
    """Identidad de un sensor tal como la ve el pipeline.

    El almacenamiento autoritativo es el CRUD externo; aquí solo se usa para
    calcular topics y asociar lecturas.
    """

    sensor_id: str
    serial_number: str
    sensor_type: str
    device_id: Optional[str] = None
    farm_id: Optional[str] = None
    name: Optional[str] = None
    unit: Optional[str] = None


@dataclass(frozen=True)
class ParsedReading:
    """Lectura decodificada de un payload. Transitoria, nunca se persiste tal cual."""

    value: float
    timestamp: Optional[datetime] = None
    serial_number: Optional[str] = None
    sensor_type: Optional[str] = None
    device_id: Optional[str] = None
    farm_id: Optional[str] = None


@dataclass(frozen=True)
class SensorReading:
    """Lectura persistida."""

    id: str
    sensor_id: str
    value: float
    timestamp: datetime
