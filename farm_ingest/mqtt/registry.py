"""Registro en memoria de suscripciones activas topic → sensor.

Vive desde el arranque hasta el apagado del proceso; no se persiste.
Se construye una vez y se inyecta al IngestionRouter (sin singleton de módulo),
de modo que los tests pueden crear una instancia limpia por caso.

Invariante: un topic apunta como máximo a un sensor. Un sensor puede tener
varios topics.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

from ..errors import SubscriptionError
from ..metrics import SUBSCRIPTION_OPERATIONS
from .transport import MessageTransport

logger = logging.getLogger(__name__)


class SubscriptionRegistry:
    """Mapa topic → sensor_id sincronizado con las suscripciones del broker.

    Las llamadas al transporte se hacen fuera del lock; `_in_flight` evita que
    dos hilos suscriban el mismo topic a la vez.
    """

    def __init__(self, transport: MessageTransport):
        self._transport = transport
        self._lock = threading.Lock()
        self._topic_to_sensor: dict[str, str] = {}
        self._patterns: set[str] = set()
        self._in_flight: set[str] = set()

    def ensure_subscribed(self, topic: str, sensor_id: str) -> bool:
        """Suscribe `topic` y lo asocia a `sensor_id`.

        Idempotente: si el topic ya está activo (o en curso) no hace nada.

        Returns:
            True si se emitió un subscribe al broker.

        Raises:
            SubscriptionError: si el broker rechaza la suscripción.
        """
        with self._lock:
            if topic in self._topic_to_sensor or topic in self._in_flight:
                return False
            self._in_flight.add(topic)

        try:
            self._transport.subscribe(topic)
        except Exception as e:
            with self._lock:
                self._in_flight.discard(topic)
            SUBSCRIPTION_OPERATIONS.labels(operation="subscribe", status="error").inc()
            logger.error("[REGISTRY] Failed to subscribe to topic %s: %s", topic, e)
            raise SubscriptionError(f"subscribe failed for {topic}: {e}", topic=topic) from e

        with self._lock:
            self._in_flight.discard(topic)
            self._topic_to_sensor[topic] = sensor_id

        SUBSCRIPTION_OPERATIONS.labels(operation="subscribe", status="ok").inc()
        logger.info("[REGISTRY] Subscribed to topic %s -> sensor %s", topic, sensor_id)
        return True

    def subscribe_patterns(self, patterns: Iterable[str]) -> None:
        """Suscripciones comodín sin sensor asociado (red de seguridad)."""
        for pattern in patterns:
            with self._lock:
                if pattern in self._patterns:
                    continue
            try:
                self._transport.subscribe(pattern)
            except Exception as e:
                SUBSCRIPTION_OPERATIONS.labels(operation="subscribe", status="error").inc()
                logger.error("[REGISTRY] Failed to subscribe to pattern %s: %s", pattern, e)
                raise SubscriptionError(f"subscribe failed for {pattern}: {e}", topic=pattern) from e
            with self._lock:
                self._patterns.add(pattern)
            SUBSCRIPTION_OPERATIONS.labels(operation="subscribe", status="ok").inc()
            logger.info("[REGISTRY] Subscribed to pattern %s", pattern)

    def resolve(self, topic: str) -> Optional[str]:
        """Lookup exacto; los comodines los evalúa el broker, no este proceso."""
        with self._lock:
            return self._topic_to_sensor.get(topic)

    def retire(self, topic: str) -> bool:
        """Desuscribe `topic` y elimina el mapping. No-op si no está registrado.

        Returns:
            True si se emitió un unsubscribe al broker.

        Raises:
            SubscriptionError: si el broker falla; el mapping se conserva.
        """
        with self._lock:
            if topic not in self._topic_to_sensor:
                return False
            sensor_id = self._topic_to_sensor[topic]

        try:
            self._transport.unsubscribe(topic)
        except Exception as e:
            SUBSCRIPTION_OPERATIONS.labels(operation="unsubscribe", status="error").inc()
            logger.error("[REGISTRY] Failed to unsubscribe from topic %s: %s", topic, e)
            raise SubscriptionError(f"unsubscribe failed for {topic}: {e}", topic=topic) from e

        with self._lock:
            if self._topic_to_sensor.get(topic) == sensor_id:
                del self._topic_to_sensor[topic]

        SUBSCRIPTION_OPERATIONS.labels(operation="unsubscribe", status="ok").inc()
        logger.info("[REGISTRY] Unsubscribed from topic %s (sensor %s)", topic, sensor_id)
        return True

    def retire_all_for_sensor(self, sensor_id: str) -> list[str]:
        """Retira todos los topics que apuntan a `sensor_id`.

        Intenta todos aunque alguno falle; luego relanza el primer error.
        """
        retired: list[str] = []
        first_error: Optional[SubscriptionError] = None
        for topic in self.topics_for_sensor(sensor_id):
            try:
                if self.retire(topic):
                    retired.append(topic)
            except SubscriptionError as e:
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error
        return retired

    def topics_for_sensor(self, sensor_id: str) -> list[str]:
        with self._lock:
            return [t for t, sid in self._topic_to_sensor.items() if sid == sensor_id]

    def snapshot(self) -> dict[str, str]:
        with self._lock:
            return dict(self._topic_to_sensor)

    @property
    def patterns(self) -> set[str]:
        with self._lock:
            return set(self._patterns)

    def __len__(self) -> int:
        with self._lock:
            return len(self._topic_to_sensor)
