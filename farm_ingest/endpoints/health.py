"""Health, readiness and metrics endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.engine import Engine

from common.db import ping

from ..deps import engine_dep
from ..mqtt.receiver import get_receiver

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Liveness probe: always returns ok if process is running."""
    return {"status": "ok"}


@router.get("/ready")
def ready(engine: Engine = Depends(engine_dep)):
    """Readiness probe: checks DB connectivity."""
    if not ping(engine):
        raise HTTPException(status_code=503, detail="not ready")
    return {"status": "ready"}


@router.get("/metrics")
def metrics():
    """Prometheus exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/mqtt/stats")
def mqtt_stats():
    receiver = get_receiver()
    if receiver is None:
        return {"running": False, "enabled": False}
    return {"enabled": True, **receiver.stats}
