"""Hooks de ciclo de vida de sensores para el CRUD externo.

El CRUD llama aquí tras crear, editar o borrar un sensor para que el
SubscriptionRegistry quede alineado.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..deps import ingestion_router_dep
from ..errors import SensorNotFoundError, SubscriptionError
from ..ingest.router import IngestionRouter
from ..schemas import SensorDeletedIn, SensorUpdatedIn, SubscriptionResult

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("/sensors/{sensor_id}", response_model=SubscriptionResult)
def sensor_created(sensor_id: str, ingest: IngestionRouter = Depends(ingestion_router_dep)):
    try:
        topics = ingest.on_sensor_created(sensor_id)
    except SensorNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SubscriptionError as e:
        raise HTTPException(status_code=502, detail=f"broker rejected {e.topic}")
    return SubscriptionResult(sensor_id=sensor_id, topics=topics)


@router.put("/sensors/{sensor_id}", response_model=SubscriptionResult)
def sensor_updated(
    sensor_id: str,
    payload: Optional[SensorUpdatedIn] = None,
    ingest: IngestionRouter = Depends(ingestion_router_dep),
):
    old_serial = payload.old_serial_number if payload else None
    try:
        topics = ingest.on_sensor_updated(sensor_id, old_serial)
    except SensorNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SubscriptionError as e:
        raise HTTPException(status_code=502, detail=f"broker rejected {e.topic}")
    return SubscriptionResult(sensor_id=sensor_id, topics=topics)


@router.delete("/sensors/{sensor_id}", response_model=SubscriptionResult)
def sensor_deleted(
    sensor_id: str,
    payload: Optional[SensorDeletedIn] = None,
    ingest: IngestionRouter = Depends(ingestion_router_dep),
):
    payload = payload or SensorDeletedIn()
    try:
        retired = ingest.on_sensor_deleted(sensor_id, payload.serial_number, payload.sensor_type)
    except SubscriptionError as e:
        raise HTTPException(status_code=502, detail=f"broker rejected {e.topic}")
    return SubscriptionResult(sensor_id=sensor_id, topics=retired)
