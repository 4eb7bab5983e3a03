"""Endpoints del dashboard de granja."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..deps import dashboard_service_dep
from ..queries.dashboard import DashboardService
from ..schemas import DashboardSummaryOut, SensorSeriesOut

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/farm/{farm_id}/summary", response_model=DashboardSummaryOut)
def farm_summary(farm_id: str, service: DashboardService = Depends(dashboard_service_dep)):
    return DashboardSummaryOut.model_validate(service.summary(farm_id))


@router.get("/farm/{farm_id}/series", response_model=List[SensorSeriesOut])
def farm_series(
    farm_id: str,
    hours: int = Query(24, ge=1, le=24 * 31),
    sensor_type: Optional[str] = Query(None),
    service: DashboardService = Depends(dashboard_service_dep),
):
    return [SensorSeriesOut.model_validate(s) for s in service.series(farm_id, hours, sensor_type)]
