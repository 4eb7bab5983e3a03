from __future__ import annotations

from typing import Optional
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url

from .config import Settings, get_settings
from .schema import metadata


logger = logging.getLogger(__name__)

# Singleton engine
_engine: Optional[Engine] = None


def build_engine(settings: Settings) -> Engine:
    url = make_url(settings.database_url)

    # Log básico de parámetros de conexión (sin contraseña)
    logger.info(
        "[DB] Crear engine driver=%s host=%s db=%s",
        url.drivername,
        url.host,
        url.database,
    )

    kwargs: dict = {"pool_pre_ping": True, "future": True}
    if url.get_backend_name() == "sqlite":
        # paho entrega mensajes en su propio thread
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_recycle"] = 300

    return create_engine(url, **kwargs)


def get_engine() -> Engine:
    global _engine

    if _engine is None:
        _engine = build_engine(get_settings())
    return _engine


def init_schema(engine: Engine) -> None:
    """Crea las tablas que falten. No migra columnas existentes."""
    metadata.create_all(engine)
    logger.info("[DB] Schema ready (%d tables)", len(metadata.tables))


def ping(engine: Engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("[DB] Test de conexión FALLÓ")
        return False
