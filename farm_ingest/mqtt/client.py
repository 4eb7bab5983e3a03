"""Cliente MQTT (paho-mqtt) para recepción de lecturas."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

import paho.mqtt.client as mqtt

from ..metrics import MQTT_CONNECTED
from .transport import MessageHandler, MessageTransport

logger = logging.getLogger(__name__)


class MQTTClient(MessageTransport):
    """Cliente MQTT ligero.

    Responsabilidades:
    - Conexión/desconexión a broker MQTT
    - Suscripción/desuscripción de topics
    - Re-suscripción de todos los topics deseados al (re)conectar
    - Delegación de mensajes a handler
    """

    def __init__(
        self,
        broker_host: str = "localhost",
        broker_port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        client_id: str = "farm-ingest",
        use_tls: bool = False,
        keepalive: int = 30,
        qos: int = 1,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.username = username
        self.password = password
        self.client_id = f"{client_id}-{int(time.time())}"
        self.use_tls = use_tls
        self.keepalive = keepalive
        self.qos = qos

        self._client: Optional[mqtt.Client] = None
        self._connected = False
        self._message_handler: Optional[MessageHandler] = None
        self._topics: set[str] = set()
        self._topics_lock = threading.Lock()

    def set_message_handler(self, handler: MessageHandler):
        """Configura el handler de mensajes."""
        self._message_handler = handler

    def connect(self) -> bool:
        """Conecta al broker MQTT."""
        try:
            self._client = mqtt.Client(
                callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
                client_id=self.client_id,
                protocol=mqtt.MQTTv311,
            )

            self._client.on_connect = self._on_connect
            self._client.on_disconnect = self._on_disconnect
            self._client.on_message = self._on_message
            self._client.reconnect_delay_set(min_delay=1, max_delay=30)

            if self.username and self.password:
                self._client.username_pw_set(self.username, self.password)
            if self.use_tls:
                self._client.tls_set()

            logger.info("[MQTT] Connecting to %s:%d", self.broker_host, self.broker_port)
            self._client.connect(self.broker_host, self.broker_port, keepalive=self.keepalive)
            self._client.loop_start()

            # Esperar conexión
            for _ in range(50):
                if self._connected:
                    return True
                time.sleep(0.1)

            logger.error("[MQTT] Connection timeout")
            return False

        except Exception as e:
            logger.exception("[MQTT] Connection failed: %s", e)
            return False

    def disconnect(self):
        """Desconecta del broker."""
        if self._client:
            try:
                self._client.loop_stop()
                self._client.disconnect()
            except Exception as e:
                logger.warning("[MQTT] Disconnect error: %s", e)
        self._set_connected(False)

    def subscribe(self, topic: str) -> None:
        """Registra el topic; si hay conexión se suscribe de inmediato.

        Sin conexión, la suscripción se aplica en el próximo on_connect.
        """
        with self._topics_lock:
            self._topics.add(topic)

        if not self._connected or self._client is None:
            logger.debug("[MQTT] Deferred subscribe to %s (not connected)", topic)
            return

        rc, _mid = self._client.subscribe(topic, qos=self.qos)
        if rc != mqtt.MQTT_ERR_SUCCESS:
            with self._topics_lock:
                self._topics.discard(topic)
            raise RuntimeError(f"subscribe rejected: {mqtt.error_string(rc)}")

    def unsubscribe(self, topic: str) -> None:
        with self._topics_lock:
            if topic not in self._topics:
                return
            self._topics.discard(topic)

        if not self._connected or self._client is None:
            return

        rc, _mid = self._client.unsubscribe(topic)
        if rc != mqtt.MQTT_ERR_SUCCESS:
            with self._topics_lock:
                self._topics.add(topic)
            raise RuntimeError(f"unsubscribe rejected: {mqtt.error_string(rc)}")

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de conexión."""
        if reason_code.is_failure:
            self._set_connected(False)
            logger.error("[MQTT] Connection failed: rc=%s", reason_code)
            return

        self._set_connected(True)
        logger.info("[MQTT] Connected to broker")

        # Tras una reconexión el broker no conserva las suscripciones (clean session)
        with self._topics_lock:
            topics = sorted(self._topics)
        for topic in topics:
            client.subscribe(topic, qos=self.qos)
        logger.info("[MQTT] Subscribed to %d topics", len(topics))

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de desconexión."""
        self._set_connected(False)
        logger.warning("[MQTT] Disconnected (rc=%s)", reason_code)

    def _on_message(self, client, userdata, msg):
        """Callback de mensaje - delega al handler."""
        if self._message_handler is None:
            return
        try:
            self._message_handler(msg.topic, msg.payload)
        except Exception as e:
            # El loop de paho no debe morir por un mensaje
            logger.exception("[MQTT] Handler error on topic %s: %s", msg.topic, e)

    def _set_connected(self, connected: bool) -> None:
        self._connected = connected
        MQTT_CONNECTED.set(1 if connected else 0)

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def topics(self) -> set[str]:
        with self._topics_lock:
            return set(self._topics)
