"""Dependencias FastAPI compartidas por los endpoints."""

from __future__ import annotations

from fastapi import Depends, HTTPException
from sqlalchemy.engine import Engine

from common.db import get_engine

from .classification.service import ThresholdService
from .ingest.router import IngestionRouter
from .mqtt.receiver import get_receiver
from .queries.dashboard import DashboardService
from .repository.readings import SqlReadingStore
from .repository.sensors import SqlSensorStore
from .repository.thresholds import ThresholdRepository


def engine_dep() -> Engine:
    return get_engine()


def threshold_service_dep(engine: Engine = Depends(engine_dep)) -> ThresholdService:
    return ThresholdService(ThresholdRepository(engine))


def dashboard_service_dep(
    engine: Engine = Depends(engine_dep),
    thresholds: ThresholdService = Depends(threshold_service_dep),
) -> DashboardService:
    return DashboardService(SqlSensorStore(engine), SqlReadingStore(engine), thresholds)


def ingestion_router_dep() -> IngestionRouter:
    receiver = get_receiver()
    if receiver is None:
        raise HTTPException(status_code=503, detail="MQTT ingest is not running")
    return receiver.router
