"""Receptor MQTT principal.

Arma el pipeline completo: transporte paho → SubscriptionRegistry →
IngestionRouter → SensorStore/ReadingStore sobre SQLAlchemy.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.engine import Engine

from common.config import Settings, get_settings
from common.db import get_engine, ping

from ..ingest.router import IngestionRouter
from ..repository.readings import SqlReadingStore
from ..repository.sensors import SqlSensorStore
from .client import MQTTClient
from .registry import SubscriptionRegistry
from .transport import MessageTransport

logger = logging.getLogger(__name__)


class MQTTReceiver:
    """Receptor MQTT que persiste lecturas de sensores de la granja."""

    def __init__(
        self,
        settings: Settings,
        engine: Engine,
        transport: Optional[MessageTransport] = None,
    ):
        self._settings = settings
        self._engine = engine
        self._transport = transport or MQTTClient(
            broker_host=settings.mqtt_broker_host,
            broker_port=settings.mqtt_broker_port,
            username=settings.mqtt_username,
            password=settings.mqtt_password,
            client_id=settings.mqtt_client_id,
            use_tls=settings.mqtt_use_tls,
            keepalive=settings.mqtt_keepalive,
        )
        self._registry = SubscriptionRegistry(self._transport)
        self._router = IngestionRouter(
            registry=self._registry,
            sensors=SqlSensorStore(engine),
            readings=SqlReadingStore(engine),
            topic_root=settings.mqtt_topic_root,
            sync_page_size=settings.sensor_sync_page_size,
        )
        self._running = False

    @property
    def router(self) -> IngestionRouter:
        return self._router

    @property
    def registry(self) -> SubscriptionRegistry:
        return self._registry

    def start(self) -> bool:
        """Conecta al broker y registra comodines + topics por sensor.

        Si el broker no responde a tiempo, las suscripciones quedan pendientes
        y el cliente las aplica al conectar.
        """
        self._transport.set_message_handler(self._on_message)
        connected = self._transport.connect()
        if not connected:
            logger.warning("[MQTT] Broker not reachable yet; subscriptions deferred")

        try:
            registered = self._router.start()
        except Exception as e:
            logger.exception("[MQTT] Start failed: %s", e)
            self._transport.disconnect()
            return False

        self._running = True
        logger.info("[MQTT] Started (sensors=%d topics=%d)", registered, len(self._registry))
        return connected

    def stop(self) -> None:
        """Detiene el receptor."""
        self._running = False
        self._transport.disconnect()
        logger.info("[MQTT] Stopped. %s", self._router.stats)

    def _on_message(self, topic: str, payload: Any) -> None:
        self._router.handle(topic, payload)
        if self._router.stats.processed and self._router.stats.processed % 100 == 0:
            logger.info("[MQTT] %s", self._router.stats)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_connected(self) -> bool:
        return self._transport.is_connected

    @property
    def stats(self) -> dict:
        return {
            "running": self._running,
            "connected": self.is_connected,
            "broker": f"{self._settings.mqtt_broker_host}:{self._settings.mqtt_broker_port}",
            "topic_root": self._settings.mqtt_topic_root,
            "registered_topics": len(self._registry),
            "wildcard_patterns": sorted(self._registry.patterns),
            **self._router.stats.to_dict(),
        }

    def health_check(self) -> dict:
        db_ok = ping(self._engine)
        return {
            "healthy": self._running and self.is_connected and db_ok,
            "running": self._running,
            "connected": self.is_connected,
            "db_connected": db_ok,
            "messages_processed": self._router.stats.processed,
            "messages_failed": self._router.stats.failed,
        }


# Singleton
_receiver: Optional[MQTTReceiver] = None


def get_receiver() -> Optional[MQTTReceiver]:
    """Obtiene el receptor singleton."""
    return _receiver


def start_receiver(settings: Optional[Settings] = None) -> bool:
    """Inicia el receptor si el feature flag lo permite."""
    global _receiver

    if _receiver is not None:
        return _receiver.is_running

    settings = settings or get_settings()
    if not settings.mqtt_ingest_enabled:
        logger.info("[MQTT] Ingest disabled (FF_MQTT_INGEST_ENABLED=false)")
        return False

    receiver = MQTTReceiver(settings, get_engine())
    started = receiver.start()
    # Broker caído con el receptor corriendo sigue contando como instancia válida
    _receiver = receiver if receiver.is_running else None
    return started


def stop_receiver() -> None:
    """Detiene el receptor."""
    global _receiver

    if _receiver is not None:
        _receiver.stop()
        _receiver = None
