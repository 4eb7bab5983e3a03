from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env en la raíz del repo; las variables reales del entorno tienen prioridad.
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str

    mqtt_broker_host: str
    mqtt_broker_port: int
    mqtt_username: str | None
    mqtt_password: str | None
    mqtt_use_tls: bool
    mqtt_client_id: str
    mqtt_keepalive: int
    mqtt_topic_root: str
    mqtt_ingest_enabled: bool

    reading_retention_days: int
    sensor_sync_page_size: int
    log_level: str


def get_settings() -> Settings:
    # Carga el env file (si existe) sin pisar variables ya definidas.
    env_file = os.getenv("FARM_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./farm_ingest.db"),
        mqtt_broker_host=os.getenv("MQTT_BROKER_HOST", "localhost"),
        mqtt_broker_port=int(os.getenv("MQTT_BROKER_PORT", "1883")),
        mqtt_username=os.getenv("MQTT_USERNAME") or None,
        mqtt_password=os.getenv("MQTT_PASSWORD") or None,
        mqtt_use_tls=_env_flag("MQTT_USE_TLS"),
        mqtt_client_id=os.getenv("MQTT_CLIENT_ID", "farm-ingest"),
        mqtt_keepalive=int(os.getenv("MQTT_KEEPALIVE", "30")),
        mqtt_topic_root=os.getenv("MQTT_TOPIC_ROOT", "shrimp_farm"),
        mqtt_ingest_enabled=_env_flag("FF_MQTT_INGEST_ENABLED", "true"),
        reading_retention_days=int(os.getenv("READING_RETENTION_DAYS", "90")),
        sensor_sync_page_size=int(os.getenv("SENSOR_SYNC_PAGE_SIZE", "1000")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
