"""Fixtures compartidas: BD SQLite en memoria y datos de una granja de prueba."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine, insert
from sqlalchemy.pool import StaticPool

from common.db import init_schema
from common.schema import devices, farms, sensors
from farm_ingest.classification.service import ThresholdService
from farm_ingest.ingest.router import IngestionRouter
from farm_ingest.mqtt.registry import SubscriptionRegistry
from farm_ingest.mqtt.transport import MessageTransport
from farm_ingest.repository.readings import SqlReadingStore
from farm_ingest.repository.sensors import SqlSensorStore
from farm_ingest.repository.thresholds import ThresholdRepository


FARM_ID = "F1"
OTHER_FARM_ID = "F2"
DEVICE_ID = "D1"

PH_SENSOR = {
    "id": "sensor-ph",
    "name": "pH estanque 1",
    "serial_number": "PH-001",
    "type": "pH",
    "device_id": DEVICE_ID,
    "unit": "pH",
    "is_active": True,
}
DO_SENSOR = {
    "id": "sensor-do",
    "name": "Oxígeno estanque 1",
    "serial_number": "DO-001",
    "type": "DO",
    "device_id": DEVICE_ID,
    "unit": "mg/L",
    "is_active": True,
}
TEMP_SENSOR = {
    "id": "sensor-temp",
    "name": "Temperatura estanque 2",
    "serial_number": "TA-001",
    "type": "TempA",
    "device_id": "D2",
    "unit": "°C",
    "is_active": True,
}


# =============================================================================
# BASE DE DATOS
# =============================================================================

@pytest.fixture
def engine():
    """SQLite en memoria compartida entre threads (StaticPool)."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    init_schema(eng)
    yield eng
    eng.dispose()


def seed_farms(engine):
    """Granja F1 con dispositivo D1 (pH + DO); granja F2 con D2 (TempA)."""
    with engine.begin() as conn:
        conn.execute(insert(farms), [
            {"id": FARM_ID, "name": "Granja Norte"},
            {"id": OTHER_FARM_ID, "name": "Granja Sur"},
        ])
        conn.execute(insert(devices), [
            {"id": DEVICE_ID, "farm_id": FARM_ID, "name": "Nodo 1", "is_active": True},
            {"id": "D2", "farm_id": OTHER_FARM_ID, "name": "Nodo 2", "is_active": True},
        ])
        conn.execute(insert(sensors), [PH_SENSOR, DO_SENSOR, TEMP_SENSOR])


@pytest.fixture
def seeded_engine(engine):
    seed_farms(engine)
    return engine


@pytest.fixture
def file_engine(tmp_path):
    """SQLite en archivo con pool real: cada conexión ve solo lo confirmado."""
    eng = create_engine(f"sqlite:///{tmp_path / 'farm.db'}", future=True)
    init_schema(eng)
    seed_farms(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def sensor_store(seeded_engine) -> SqlSensorStore:
    return SqlSensorStore(seeded_engine)


@pytest.fixture
def reading_store(seeded_engine) -> SqlReadingStore:
    return SqlReadingStore(seeded_engine)


@pytest.fixture
def threshold_repo(seeded_engine) -> ThresholdRepository:
    return ThresholdRepository(seeded_engine)


@pytest.fixture
def threshold_service(threshold_repo) -> ThresholdService:
    return ThresholdService(threshold_repo)


# =============================================================================
# MQTT
# =============================================================================

@pytest.fixture
def transport():
    """Transporte falso: registra subscribe/unsubscribe sin broker."""
    mock = MagicMock(spec=MessageTransport)
    mock.connect.return_value = True
    return mock


@pytest.fixture
def registry(transport) -> SubscriptionRegistry:
    return SubscriptionRegistry(transport)


@pytest.fixture
def router(registry, sensor_store, reading_store) -> IngestionRouter:
    return IngestionRouter(registry, sensor_store, reading_store, sync_page_size=2)
