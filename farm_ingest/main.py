from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from common.config import get_settings
from common.db import get_engine, init_schema

from .endpoints import dashboard_router, health_router, subscriptions_router, thresholds_router
from .mqtt.receiver import start_receiver, stop_receiver

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    init_schema(get_engine())

    if settings.mqtt_ingest_enabled:
        if not start_receiver(settings):
            logger.warning("[MQTT] Receiver started without broker connection")
    else:
        logger.info("[MQTT] Ingest disabled by feature flag")

    yield

    stop_receiver()


def _configure_logging() -> None:
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


_configure_logging()

app = FastAPI(title="Farm Ingest Service", version="0.1.0", lifespan=lifespan)

app.include_router(health_router)
app.include_router(thresholds_router)
app.include_router(subscriptions_router)
app.include_router(dashboard_router)
