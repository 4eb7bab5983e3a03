"""Esquema relacional del servicio.

farms / devices / sensors pertenecen al CRUD externo; aquí solo se declaran
las columnas que el pipeline de ingesta necesita para resolver sensores.
sensor_readings y sensor_thresholds son propiedad de este servicio.
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    func,
)

metadata = MetaData()


farms = Table(
    "farms",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(100), nullable=False),
)


devices = Table(
    "devices",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("farm_id", String(36), ForeignKey("farms.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("name", String(100), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
)


sensors = Table(
    "sensors",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(100), nullable=False),
    Column("serial_number", String(100), nullable=False, unique=True),
    Column("type", String(50), nullable=False),
    Column("device_id", String(36), ForeignKey("devices.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("unit", String(20), nullable=True),
    Column("is_active", Boolean, nullable=False, default=True),
)


sensor_readings = Table(
    "sensor_readings",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("sensor_id", String(36), ForeignKey("sensors.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("value", Float, nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False, server_default=func.now(), index=True),
)


sensor_thresholds = Table(
    "sensor_thresholds",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("farm_id", String(36), ForeignKey("farms.id", ondelete="CASCADE"), nullable=False),
    Column("sensor_type", String(50), nullable=False),
    Column("severity_level", String(10), nullable=False),
    Column("range_order", Integer, nullable=False, default=0),
    Column("min_value", Float, nullable=True),
    Column("max_value", Float, nullable=True),
    Column("notification_enabled", Boolean, nullable=False, default=True),
    Column("color_code", String(7), nullable=False, default="#4caf50"),
    Column("label", String(100), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint(
        "farm_id", "sensor_type", "severity_level", "range_order",
        name="uq_sensor_thresholds_band",
    ),
)
