"""Tests del parser de payloads."""

from datetime import datetime, timezone

import pytest

from farm_ingest.errors import ParseError
from farm_ingest.mqtt.payload import parse_payload


# =============================================================================
# FORMATOS VÁLIDOS
# =============================================================================

class TestValidPayloads:

    def test_bare_number(self):
        parsed = parse_payload("42.5")
        assert parsed.value == 42.5
        assert parsed.timestamp is None
        assert parsed.serial_number is None

    def test_bare_number_with_whitespace_bytes(self):
        assert parse_payload(b"  12\n").value == 12.0

    def test_structured_minimal(self):
        assert parse_payload('{"value": 7.1}').value == 7.1

    def test_structured_full_metadata(self):
        raw = (
            b'{"value": 7.9, "timestamp": "2026-01-31T08:00:00Z", "serialNumber": "PH-001",'
            b' "type": "pH", "deviceId": "D1", "farmId": "F1", "extra": 1}'
        )
        parsed = parse_payload(raw)
        assert parsed.value == 7.9
        assert parsed.timestamp == datetime(2026, 1, 31, 8, 0, tzinfo=timezone.utc)
        assert parsed.serial_number == "PH-001"
        assert parsed.sensor_type == "pH"
        assert parsed.device_id == "D1"
        assert parsed.farm_id == "F1"

    def test_numeric_serial_is_stringified(self):
        assert parse_payload('{"value": 1, "serialNumber": 12345}').serial_number == "12345"

    def test_numeric_string_value_is_coerced(self):
        assert parse_payload('{"value": "8.05"}').value == 8.05

    def test_already_decoded_mapping(self):
        assert parse_payload({"value": 3}).value == 3.0

    def test_naive_timestamp_is_utc(self):
        parsed = parse_payload('{"value": 1, "timestamp": "2026-02-01T10:30:00"}')
        assert parsed.timestamp.tzinfo == timezone.utc


class TestTimestampLenient:
    """Un timestamp inválido nunca es fatal."""

    @pytest.mark.parametrize("ts", ['"yesterday"', '""', "12345", "null", '{"a": 1}'])
    def test_invalid_timestamp_is_absent(self, ts):
        parsed = parse_payload('{"value": 5.5, "timestamp": %s}' % ts)
        assert parsed.value == 5.5
        assert parsed.timestamp is None


# =============================================================================
# PAYLOADS INVÁLIDOS
# =============================================================================

class TestInvalidPayloads:

    @pytest.mark.parametrize("raw", [
        '{"value": "abc"}',
        "not a number",
        "",
        "   ",
        "{}",
        '{"value": null}',
        '{"temp": 7.1}',
        "[1, 2]",
        "NaN",
        "inf",
        b"\xff\xfe",
        '{"value": true}',
        '{"value": false}',
        '{"value": [7.1]}',
        "true",
    ])
    def test_rejected(self, raw):
        with pytest.raises(ParseError):
            parse_payload(raw)

    def test_boolean_mapping_value(self):
        with pytest.raises(ParseError):
            parse_payload({"value": True})

    def test_unsupported_type(self):
        with pytest.raises(ParseError):
            parse_payload(object())

    def test_non_finite_number(self):
        with pytest.raises(ParseError):
            parse_payload(float("nan"))
