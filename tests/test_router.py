"""Tests del IngestionRouter: resolución de sensor, persistencia y ciclo de vida."""

import json
from unittest.mock import MagicMock

import pytest
from sqlalchemy import update

from common.schema import sensors
from farm_ingest.classification import classify
from farm_ingest.errors import (
    ParseError,
    ReadingPersistenceError,
    SensorNotFoundError,
    SubscriptionError,
    UnresolvedSensorError,
)
from farm_ingest.ingest.router import IngestionRouter

from .conftest import DEVICE_ID, FARM_ID, PH_SENSOR


PH_TOPICS = [
    f"shrimp_farm/{FARM_ID}/device/{DEVICE_ID}/sensor/ph",
    "sensor/PH-001",
    "sensors/ph/PH-001",
]


def rename_serial(engine, sensor_id, new_serial):
    with engine.begin() as conn:
        conn.execute(update(sensors).where(sensors.c.id == sensor_id).values(serial_number=new_serial))


# =============================================================================
# CAMINO RÁPIDO (REGISTRY)
# =============================================================================

class TestFastPath:

    def test_registered_topic_persists_reading(self, router, registry, reading_store):
        registry.ensure_subscribed("sensor/PH-001", "sensor-ph")

        result = router.handle("sensor/PH-001", b'{"value": 8.0}')

        assert result.accepted is True
        assert result.sensor_id == "sensor-ph"
        latest = reading_store.latest_for("sensor-ph")
        assert latest.value == 8.0
        assert latest.id == result.reading.id

    def test_payload_timestamp_used(self, router, registry, reading_store):
        registry.ensure_subscribed("sensor/PH-001", "sensor-ph")

        router.handle("sensor/PH-001", '{"value": 8.1, "timestamp": "2026-03-01T12:00:00Z"}')

        latest = reading_store.latest_for("sensor-ph")
        assert latest.timestamp.isoformat() == "2026-03-01T12:00:00+00:00"

    def test_parse_error_dropped(self, router, registry, reading_store):
        registry.ensure_subscribed("sensor/PH-001", "sensor-ph")

        result = router.handle("sensor/PH-001", b"garbage")

        assert result.accepted is False
        assert isinstance(result.error, ParseError)
        assert result.reason == "parse_error"
        assert reading_store.latest_for("sensor-ph") is None
        assert router.stats.dropped == {"parse_error": 1}

    def test_registry_mapping_wins_over_payload_serial(self, router, registry, reading_store):
        registry.ensure_subscribed("sensor/PH-001", "sensor-ph")

        router.handle("sensor/PH-001", json.dumps({"value": 5.0, "serialNumber": "DO-001"}))

        assert reading_store.latest_for("sensor-ph").value == 5.0
        assert reading_store.latest_for("sensor-do") is None


# =============================================================================
# FALLBACK (SIN MAPPING)
# =============================================================================

class TestFallbackPath:

    def test_serial_from_payload(self, router, reading_store):
        result = router.handle("sensors/do/unknown", json.dumps({"value": 6.2, "serialNumber": "DO-001"}))

        assert result.accepted is True
        assert result.sensor_id == "sensor-do"
        assert reading_store.latest_for("sensor-do").value == 6.2

    def test_serial_from_topic(self, router, reading_store):
        result = router.handle("sensor/DO-001", "4.4")

        assert result.accepted is True
        assert reading_store.latest_for("sensor-do").value == 4.4

    def test_no_serial_anywhere(self, router):
        result = router.handle("shrimp_farm/F1/device/D1/sensor/ph", '{"value": 7.9}')

        assert result.accepted is False
        assert isinstance(result.error, UnresolvedSensorError)
        assert "cannot determine sensor" in str(result.error)

    def test_unknown_serial(self, router):
        result = router.handle("sensor/NOPE-9", "1.0")

        assert isinstance(result.error, UnresolvedSensorError)
        assert result.error.serial_number == "NOPE-9"

    def test_parse_error_before_lookup(self, router):
        store = MagicMock()
        router = IngestionRouter(router.registry, store, MagicMock())

        result = router.handle("sensor/DO-001", "not a number")

        assert isinstance(result.error, ParseError)
        store.find_by_serial_number.assert_not_called()


# =============================================================================
# ERRORES NUNCA SE PROPAGAN
# =============================================================================

class TestNeverRaises:

    def test_store_failure_is_reported(self, registry, sensor_store):
        readings = MagicMock()
        readings.insert.side_effect = RuntimeError("db down")
        router = IngestionRouter(registry, sensor_store, readings)
        registry.ensure_subscribed("sensor/PH-001", "sensor-ph")

        result = router.handle("sensor/PH-001", "7.0")

        assert isinstance(result.error, ReadingPersistenceError)
        assert result.error.topic == "sensor/PH-001"

    def test_unexpected_error_is_reported(self, reading_store):
        registry = MagicMock()
        registry.resolve.side_effect = KeyError("boom")
        router = IngestionRouter(registry, MagicMock(), reading_store)

        result = router.handle("sensor/x", "1")

        assert result.accepted is False
        assert result.reason == "ingest_error"

    def test_stats_count_outcomes(self, router, registry):
        registry.ensure_subscribed("sensor/PH-001", "sensor-ph")
        router.handle("sensor/PH-001", "7.0")
        router.handle("sensor/PH-001", "x")
        router.handle("sensor/NOPE", "1")

        stats = router.stats.to_dict()
        assert stats["received"] == 3
        assert stats["processed"] == 1
        assert stats["failed"] == 2
        assert stats["dropped"] == {"parse_error": 1, "unresolved_sensor": 1}


# =============================================================================
# ARRANQUE Y CICLO DE VIDA
# =============================================================================

class TestStartup:

    def test_start_subscribes_patterns_then_sensors(self, router, registry, transport):
        registered = router.start()

        assert registered == 3
        calls = [c.args[0] for c in transport.subscribe.call_args_list]
        assert calls[:3] == ["shrimp_farm/+/device/+/sensor/+", "sensor/+", "sensors/+/+"]
        for topic in PH_TOPICS:
            assert registry.resolve(topic) == "sensor-ph"

    def test_sync_pages_through_store(self, router, sensor_store, monkeypatch):
        spy = MagicMock(wraps=sensor_store.list_all)
        monkeypatch.setattr(sensor_store, "list_all", spy)

        assert router.sync_all_sensors(page_size=2) == 3
        assert [c.kwargs["page"] for c in spy.call_args_list] == [1, 2]

    def test_sync_continues_after_failure(self, router, registry, transport):
        def fail_for_ph(topic):
            if "PH-001" in topic:
                raise RuntimeError("rejected")

        transport.subscribe.side_effect = fail_for_ph

        assert router.sync_all_sensors() == 2
        assert registry.resolve("sensor/DO-001") == "sensor-do"


class TestLifecycle:

    def test_created_registers_three_topics(self, router, registry):
        assert router.on_sensor_created("sensor-ph") == PH_TOPICS
        assert registry.topics_for_sensor("sensor-ph") == PH_TOPICS

    def test_created_unknown_sensor(self, router):
        with pytest.raises(SensorNotFoundError):
            router.on_sensor_created("ghost")

    def test_created_propagates_subscription_error(self, router, transport):
        transport.subscribe.side_effect = RuntimeError("rejected")
        with pytest.raises(SubscriptionError):
            router.on_sensor_created("sensor-ph")

    def test_serial_change_retires_before_registering(self, router, registry, transport, seeded_engine):
        router.on_sensor_created("sensor-ph")
        rename_serial(seeded_engine, "sensor-ph", "PH-002")

        events = []
        transport.subscribe.side_effect = lambda t: events.append(("sub", t))
        transport.unsubscribe.side_effect = lambda t: events.append(("unsub", t))

        topics = router.on_sensor_updated("sensor-ph", old_serial_number="PH-001")

        assert "sensor/PH-002" in topics
        assert registry.resolve("sensor/PH-001") is None
        assert registry.resolve("sensors/ph/PH-001") is None
        assert registry.resolve("sensor/PH-002") == "sensor-ph"
        first_sub = min(i for i, e in enumerate(events) if e[0] == "sub")
        last_unsub = max(i for i, e in enumerate(events) if e[0] == "unsub")
        assert last_unsub < first_sub

    def test_update_without_serial_change_is_stable(self, router, transport):
        router.on_sensor_created("sensor-ph")
        transport.reset_mock()

        router.on_sensor_updated("sensor-ph")

        transport.subscribe.assert_not_called()
        transport.unsubscribe.assert_not_called()

    def test_update_does_not_retire_topic_of_other_sensor(self, router, registry, seeded_engine):
        router.on_sensor_created("sensor-ph")
        registry.ensure_subscribed("sensor/OLD-1", "sensor-do")

        router.on_sensor_updated("sensor-ph", old_serial_number="OLD-1")

        assert registry.resolve("sensor/OLD-1") == "sensor-do"

    def test_deleted_retires_everything_for_sensor(self, router, registry):
        router.on_sensor_created("sensor-ph")
        router.on_sensor_created("sensor-do")

        retired = router.on_sensor_deleted("sensor-ph", "PH-001", "pH")

        assert sorted(retired) == sorted(PH_TOPICS)
        assert registry.topics_for_sensor("sensor-ph") == []
        assert registry.resolve("sensor/DO-001") == "sensor-do"

    def test_deleted_message_goes_to_fallback(self, router, reading_store, seeded_engine):
        router.on_sensor_created("sensor-ph")
        router.on_sensor_deleted("sensor-ph", "PH-001", "pH")

        # El sensor sigue en la BD del CRUD en este test: el fallback lo encuentra
        result = router.handle("sensor/PH-001", "7.5")
        assert result.accepted is True


# =============================================================================
# END-TO-END
# =============================================================================

def test_end_to_end_ph_reading_is_normal(router, reading_store, threshold_service):
    """Mensaje en el topic jerárquico → lectura persistida → severidad normal."""
    router.start()

    result = router.handle(f"shrimp_farm/{FARM_ID}/device/{DEVICE_ID}/sensor/ph", b'{"value": 7.9}')

    assert result.accepted is True
    assert result.sensor_id == PH_SENSOR["id"]
    stored = reading_store.latest_for(PH_SENSOR["id"])
    assert stored.value == 7.9

    bands = threshold_service.ensure_bands_exist(FARM_ID, "pH")
    assert classify(stored.value, bands).severity == "normal"
