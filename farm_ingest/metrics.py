"""Métricas Prometheus del pipeline de ingesta."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

MQTT_MESSAGES = Counter(
    "farm_ingest_mqtt_messages_total",
    "MQTT messages handled by the ingestion router",
    ["status"],  # accepted, parse_error, unresolved_sensor, persistence_error
)

MQTT_PROCESSING_LATENCY = Histogram(
    "farm_ingest_mqtt_processing_seconds",
    "Ingestion latency per message",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

MQTT_CONNECTED = Gauge(
    "farm_ingest_mqtt_connected",
    "MQTT broker connection status",
)

SUBSCRIPTION_OPERATIONS = Counter(
    "farm_ingest_subscription_operations_total",
    "Broker subscribe/unsubscribe calls",
    ["operation", "status"],
)

THRESHOLD_REPLACEMENTS = Counter(
    "farm_ingest_threshold_replacements_total",
    "Band set replacements per outcome",
    ["status"],  # ok, rejected, failed
)
