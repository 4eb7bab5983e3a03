"""Parser tolerante de payloads MQTT.

Formatos aceptados:
    {"value": 7.9, "timestamp": "2026-01-31T08:00:00Z", "serialNumber": "SN1",
     "type": "pH", "deviceId": "D1", "farmId": "F1"}
    "7.9"          (literal numérico plano)
    b"7.9"         (buffer binario, se decodifica como UTF-8)

Solo `value` es obligatorio. Un timestamp inválido se trata como ausente.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..domain import ParsedReading
from ..errors import ParseError

logger = logging.getLogger(__name__)


class ReadingMessage(BaseModel):
    """Schema de validación para mensajes estructurados."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    value: float
    timestamp: Optional[datetime] = None
    serial_number: Optional[str] = Field(default=None, alias="serialNumber")
    sensor_type: Optional[str] = Field(default=None, alias="type")
    device_id: Optional[str] = Field(default=None, alias="deviceId")
    farm_id: Optional[str] = Field(default=None, alias="farmId")

    @field_validator("value", mode="before")
    @classmethod
    def reject_non_numeric(cls, v: Any) -> Any:
        # En modo lax pydantic convierte true/false en 1.0/0.0
        if isinstance(v, bool) or not isinstance(v, (int, float, str)):
            raise ValueError("Value must be a number or numeric string")
        return v

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("Value is NaN or infinite")
        return v

    @field_validator("timestamp", mode="before")
    @classmethod
    def lenient_timestamp(cls, v: Any) -> Optional[datetime]:
        # Timestamp inválido = ausente (se usa la hora de ingesta)
        if isinstance(v, datetime):
            return _as_utc(v)
        if not isinstance(v, str) or not v.strip():
            return None
        try:
            return _as_utc(datetime.fromisoformat(v.strip().replace("Z", "+00:00")))
        except ValueError:
            logger.debug("[PAYLOAD] Ignoring invalid timestamp %r", v)
            return None

    @field_validator("serial_number", "sensor_type", "device_id", "farm_id", mode="before")
    @classmethod
    def stringify_metadata(cls, v: Any) -> Optional[str]:
        if v is None or isinstance(v, (dict, list)):
            return None
        return str(v)

    def to_parsed(self) -> ParsedReading:
        return ParsedReading(
            value=self.value,
            timestamp=self.timestamp,
            serial_number=self.serial_number,
            sensor_type=self.sensor_type,
            device_id=self.device_id,
            farm_id=self.farm_id,
        )


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _parse_bare_number(text: str) -> Optional[float]:
    stripped = text.strip()
    if not stripped:
        return None
    try:
        number = float(stripped)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _parse_structured(data: Mapping) -> Optional[ParsedReading]:
    if data.get("value") is None:
        return None
    try:
        return ReadingMessage.model_validate(dict(data)).to_parsed()
    except ValidationError as e:
        logger.debug("[PAYLOAD] Structured payload rejected: %s", e.errors())
        return None


def parse_payload(raw: Any) -> ParsedReading:
    """Decodifica un mensaje crudo a ParsedReading.

    Raises:
        ParseError: si no hay un `value` numérico finito.
    """
    if isinstance(raw, (bytes, bytearray, memoryview)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"payload is not valid UTF-8: {e}") from e

    if isinstance(raw, Mapping):
        parsed = _parse_structured(raw)
        if parsed is None:
            raise ParseError("unrecognized payload")
        return parsed

    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        if not math.isfinite(raw):
            raise ParseError("unrecognized payload")
        return ParsedReading(value=float(raw))

    if not isinstance(raw, str):
        raise ParseError(f"unsupported payload type {type(raw).__name__}")

    try:
        decoded = json.loads(raw)
    except ValueError:
        decoded = None

    if isinstance(decoded, Mapping):
        parsed = _parse_structured(decoded)
        if parsed is not None:
            return parsed

    number = _parse_bare_number(raw)
    if number is None:
        raise ParseError("unrecognized payload")
    return ParsedReading(value=number)
