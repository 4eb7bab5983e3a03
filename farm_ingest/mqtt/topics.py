"""Codec de topics MQTT.

Un sensor es alcanzable por tres esquemas de direccionamiento:

  {root}/{farm_id}/device/{device_id}/sensor/{type}   jerárquico
  sensor/{serial}                                     directo por serial
  sensors/{type}/{serial}                             agrupado por tipo

El tipo siempre va en minúsculas. parse_topic() es un fallback best-effort;
el mapping del SubscriptionRegistry es la fuente autoritativa.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..domain import SensorIdentity

DEFAULT_TOPIC_ROOT = "shrimp_farm"


@dataclass(frozen=True)
class TopicHints:
    """Identidad parcial extraída de un topic."""

    farm_id: Optional[str] = None
    device_id: Optional[str] = None
    sensor_type: Optional[str] = None
    serial_number: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.farm_id or self.device_id or self.sensor_type or self.serial_number)


def hierarchical_topic(farm_id: str, device_id: str, sensor_type: str, root: str = DEFAULT_TOPIC_ROOT) -> str:
    return f"{root}/{farm_id}/device/{device_id}/sensor/{sensor_type.lower()}"


def serial_topic(serial_number: str) -> str:
    return f"sensor/{serial_number}"


def type_topic(sensor_type: str, serial_number: str) -> str:
    return f"sensors/{sensor_type.lower()}/{serial_number}"


def topics_for(identity: SensorIdentity, root: str = DEFAULT_TOPIC_ROOT) -> list[str]:
    """Topics de un sensor, en orden: jerárquico, serial, tipo.

    Sin farm/device vinculados se omite el jerárquico; el sensor sigue
    siendo alcanzable por serial.
    """
    topics = []
    if identity.farm_id and identity.device_id:
        topics.append(hierarchical_topic(identity.farm_id, identity.device_id, identity.sensor_type, root))
    topics.append(serial_topic(identity.serial_number))
    topics.append(type_topic(identity.sensor_type, identity.serial_number))
    return topics


def wildcard_patterns(root: str = DEFAULT_TOPIC_ROOT) -> list[str]:
    """Suscripciones catch-all que cubren los tres esquemas."""
    return [
        f"{root}/+/device/+/sensor/+",
        "sensor/+",
        "sensors/+/+",
    ]


def parse_topic(topic: str, root: str = DEFAULT_TOPIC_ROOT) -> TopicHints:
    """Extrae pistas de identidad de un topic.

    Se prueban los tres esquemas en orden; gana el primero cuya forma coincida
    exactamente (número de segmentos y anclas literales). Segmentos vacíos no
    cuentan como coincidencia.
    """
    parts = topic.split("/")
    if any(not p for p in parts):
        return TopicHints()

    if len(parts) == 6 and parts[0] == root and parts[2] == "device" and parts[4] == "sensor":
        return TopicHints(farm_id=parts[1], device_id=parts[3], sensor_type=parts[5])

    if len(parts) == 2 and parts[0] == "sensor":
        return TopicHints(serial_number=parts[1])

    if len(parts) == 3 and parts[0] == "sensors":
        return TopicHints(sensor_type=parts[1], serial_number=parts[2])

    return TopicHints()
