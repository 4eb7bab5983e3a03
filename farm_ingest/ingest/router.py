"""Router de ingesta: (topic, payload) → lectura persistida.

Dos caminos de resolución del sensor:

1. Rápido: el topic está en el SubscriptionRegistry → sensor_id directo,
   sin ida a la BD.
2. Fallback: topic desconocido (llegó por un comodín) → se parsea primero y
   el serial sale del payload o, si falta, del propio topic; luego se busca
   el sensor por serial en el SensorStore.

handle() nunca lanza: cada fallo termina el mensaje, se registra, se cuenta
y se devuelve tipado en IngestResult.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

from ..domain import ParsedReading, SensorIdentity, SensorReading
from ..errors import (
    IngestError,
    ReadingPersistenceError,
    SensorNotFoundError,
    SubscriptionError,
    UnresolvedSensorError,
)
from ..metrics import MQTT_MESSAGES, MQTT_PROCESSING_LATENCY
from ..mqtt.payload import parse_payload
from ..mqtt.registry import SubscriptionRegistry
from ..mqtt.topics import (
    DEFAULT_TOPIC_ROOT,
    parse_topic,
    serial_topic,
    topics_for,
    type_topic,
    wildcard_patterns,
)
from ..repository.interfaces import ReadingStore, SensorStore
from .stats import Stats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestResult:
    """Resultado de procesar un mensaje."""

    topic: str
    accepted: bool
    sensor_id: Optional[str] = None
    reading: Optional[SensorReading] = None
    error: Optional[IngestError] = None

    @property
    def reason(self) -> str:
        return "accepted" if self.accepted else (self.error.reason if self.error else "ingest_error")


class IngestionRouter:
    """Resuelve el sensor de cada mensaje y persiste la lectura."""

    def __init__(
        self,
        registry: SubscriptionRegistry,
        sensors: SensorStore,
        readings: ReadingStore,
        topic_root: str = DEFAULT_TOPIC_ROOT,
        sync_page_size: int = 1000,
        stats: Optional[Stats] = None,
    ):
        self._registry = registry
        self._sensors = sensors
        self._readings = readings
        self._root = topic_root
        self._page_size = sync_page_size
        self.stats = stats or Stats()

    @property
    def registry(self) -> SubscriptionRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Mensajes
    # ------------------------------------------------------------------

    def handle(self, topic: str, payload: Any) -> IngestResult:
        """Procesa un mensaje entrante. Cero o una lectura persistida."""
        start = time.perf_counter()
        self.stats.record_received()
        try:
            sensor_id, reading = self._ingest(topic, payload)
        except IngestError as e:
            if e.topic is None:
                e.topic = topic
            return self._drop(topic, e)
        except Exception as e:
            logger.exception("[ROUTER] Unexpected error handling topic=%s", topic)
            return self._drop(topic, IngestError(f"unexpected error: {e}", topic=topic))
        finally:
            MQTT_PROCESSING_LATENCY.observe(time.perf_counter() - start)

        self.stats.record_processed()
        MQTT_MESSAGES.labels(status="accepted").inc()
        logger.debug(
            "[ROUTER] Stored reading sensor=%s value=%s topic=%s",
            sensor_id, reading.value, topic,
        )
        return IngestResult(topic=topic, accepted=True, sensor_id=sensor_id, reading=reading)

    def _ingest(self, topic: str, payload: Any) -> tuple[str, SensorReading]:
        sensor_id = self._registry.resolve(topic)
        if sensor_id is not None:
            parsed = parse_payload(payload)
            return sensor_id, self._persist(sensor_id, parsed, topic)

        parsed = parse_payload(payload)
        serial_number = parsed.serial_number or parse_topic(topic, self._root).serial_number
        if not serial_number:
            raise UnresolvedSensorError("cannot determine sensor", topic=topic)

        identity = self._sensors.find_by_serial_number(serial_number)
        if identity is None:
            raise UnresolvedSensorError(
                f"no sensor with serial number {serial_number}",
                topic=topic,
                serial_number=serial_number,
            )
        return identity.sensor_id, self._persist(identity.sensor_id, parsed, topic)

    def _persist(self, sensor_id: str, parsed: ParsedReading, topic: str) -> SensorReading:
        try:
            return self._readings.insert(sensor_id, parsed.value, parsed.timestamp)
        except Exception as e:
            raise ReadingPersistenceError(f"could not store reading: {e}", topic=topic) from e

    def _drop(self, topic: str, error: IngestError) -> IngestResult:
        self.stats.record_dropped(error.reason)
        MQTT_MESSAGES.labels(status=error.reason).inc()
        logger.warning("[ROUTER] Dropped message topic=%s reason=%s: %s", topic, error.reason, error)
        return IngestResult(topic=topic, accepted=False, error=error)

    # ------------------------------------------------------------------
    # Arranque
    # ------------------------------------------------------------------

    def start(self) -> int:
        """Comodines primero y luego los topics de cada sensor conocido."""
        self._registry.subscribe_patterns(wildcard_patterns(self._root))
        return self.sync_all_sensors()

    def sync_all_sensors(self, page_size: Optional[int] = None) -> int:
        """Registra los topics de todos los sensores, paginando el SensorStore.

        Un fallo de suscripción de un sensor se registra y no corta el resto.

        Returns:
            Cantidad de sensores registrados sin error.
        """
        limit = page_size or self._page_size
        page = 1
        registered = 0
        failed = 0
        while True:
            batch = self._sensors.list_all(page=page, limit=limit)
            for identity in batch:
                try:
                    self._register(identity)
                    registered += 1
                except SubscriptionError as e:
                    failed += 1
                    logger.error("[ROUTER] Sync failed for sensor %s: %s", identity.sensor_id, e)
            if len(batch) < limit:
                break
            page += 1

        logger.info(
            "[ROUTER] Sensor sync done: registered=%d failed=%d topics=%d",
            registered, failed, len(self._registry),
        )
        return registered

    # ------------------------------------------------------------------
    # Ciclo de vida de sensores (llamado por el CRUD)
    # ------------------------------------------------------------------

    def on_sensor_created(self, sensor_id: str) -> list[str]:
        identity = self._require(sensor_id)
        topics = self._register(identity)
        logger.info("[ROUTER] Sensor %s registered on %d topics", sensor_id, len(topics))
        return topics

    def on_sensor_updated(self, sensor_id: str, old_serial_number: Optional[str] = None) -> list[str]:
        """Re-registra un sensor editado.

        Si cambió el serial, los topics viejos se retiran ANTES de registrar
        los nuevos.
        """
        identity = self._require(sensor_id)
        current = topics_for(identity, self._root)

        stale: list[str] = []
        if old_serial_number and old_serial_number != identity.serial_number:
            stale.append(serial_topic(old_serial_number))
            stale.append(type_topic(identity.sensor_type, old_serial_number))
        for topic in self._registry.topics_for_sensor(sensor_id):
            if topic not in current and topic not in stale:
                stale.append(topic)

        for topic in stale:
            if self._registry.resolve(topic) == sensor_id:
                self._registry.retire(topic)

        topics = self._register(identity)
        logger.info(
            "[ROUTER] Sensor %s updated: retired=%d registered=%d",
            sensor_id, len(stale), len(topics),
        )
        return topics

    def on_sensor_deleted(
        self,
        sensor_id: str,
        serial_number: Optional[str] = None,
        sensor_type: Optional[str] = None,
    ) -> list[str]:
        """Retira los topics de serial/tipo y cualquier otro que apunte al sensor."""
        retired: list[str] = []
        if serial_number:
            candidates = [serial_topic(serial_number)]
            if sensor_type:
                candidates.append(type_topic(sensor_type, serial_number))
            for topic in candidates:
                if self._registry.resolve(topic) == sensor_id and self._registry.retire(topic):
                    retired.append(topic)

        retired.extend(self._registry.retire_all_for_sensor(sensor_id))
        logger.info("[ROUTER] Sensor %s deleted: retired %d topics", sensor_id, len(retired))
        return retired

    def _register(self, identity: SensorIdentity) -> list[str]:
        topics = topics_for(identity, self._root)
        for topic in topics:
            self._registry.ensure_subscribed(topic, identity.sensor_id)
        return topics

    def _require(self, sensor_id: str) -> SensorIdentity:
        identity = self._sensors.find_by_id(sensor_id)
        if identity is None:
            raise SensorNotFoundError(sensor_id)
        return identity
