"""Errores tipados del pipeline de ingesta y clasificación.

Errores por mensaje (IngestError y subclases): terminales para ese mensaje,
se registran y se cuentan, nunca se propagan al transporte MQTT.

Errores de configuración (SubscriptionError, BandConfigurationError): se
propagan al llamador, que es una operación síncrona iniciada por un usuario.
"""

from __future__ import annotations

from typing import Optional


class FarmIngestError(Exception):
    """Base de todos los errores del servicio."""


class IngestError(FarmIngestError):
    """Mensaje descartado. `reason` es la etiqueta usada en métricas."""

    reason = "ingest_error"

    def __init__(self, message: str, *, topic: Optional[str] = None):
        super().__init__(message)
        self.topic = topic


class ParseError(IngestError):
    reason = "parse_error"


class UnresolvedSensorError(IngestError):
    reason = "unresolved_sensor"

    def __init__(
        self,
        message: str,
        *,
        topic: Optional[str] = None,
        serial_number: Optional[str] = None,
    ):
        super().__init__(message, topic=topic)
        self.serial_number = serial_number


class ReadingPersistenceError(IngestError):
    reason = "persistence_error"


class SubscriptionError(FarmIngestError):
    """Fallo de subscribe/unsubscribe en el broker. El mapping no cambia."""

    def __init__(self, message: str, *, topic: str):
        super().__init__(message)
        self.topic = topic


class BandConfigurationError(FarmIngestError):
    """Lista de bandas inválida; se rechaza antes de abrir la transacción."""

    def __init__(self, message: str, *, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class SensorNotFoundError(FarmIngestError):
    """Sensor inexistente en un hook de ciclo de vida."""

    def __init__(self, sensor_id: str):
        super().__init__(f"Sensor {sensor_id} not found")
        self.sensor_id = sensor_id
