"""Endpoints de configuración de bandas de umbral por granja."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..classification.service import ThresholdService
from ..deps import threshold_service_dep
from ..errors import BandConfigurationError
from ..schemas import ReplaceBandsIn, ThresholdBandOut

router = APIRouter(prefix="/sensor-thresholds", tags=["thresholds"])
logger = logging.getLogger(__name__)


@router.get("/farm/{farm_id}", response_model=List[ThresholdBandOut])
def get_farm_thresholds(farm_id: str, service: ThresholdService = Depends(threshold_service_dep)):
    return [ThresholdBandOut.model_validate(b) for b in service.get_thresholds_by_farm(farm_id)]


@router.get("/farm/{farm_id}/sensor/{sensor_type}", response_model=List[ThresholdBandOut])
def get_sensor_type_thresholds(
    farm_id: str,
    sensor_type: str,
    service: ThresholdService = Depends(threshold_service_dep),
):
    """Bandas del par; la primera consulta materializa las de defecto."""
    return [ThresholdBandOut.model_validate(b) for b in service.ensure_bands_exist(farm_id, sensor_type)]


@router.post("/farm/{farm_id}/sensor/{sensor_type}", response_model=List[ThresholdBandOut])
def replace_thresholds(
    farm_id: str,
    sensor_type: str,
    payload: ReplaceBandsIn,
    service: ThresholdService = Depends(threshold_service_dep),
):
    bands = [b.to_band(sensor_type) for b in payload.bands]
    try:
        stored = service.replace_bands(farm_id, sensor_type, bands)
    except BandConfigurationError as e:
        raise HTTPException(status_code=422, detail={"message": str(e), "errors": e.errors})
    return [ThresholdBandOut.model_validate(b) for b in stored]


@router.get("/defaults/{sensor_type}", response_model=List[ThresholdBandOut])
def get_default_thresholds(sensor_type: str, service: ThresholdService = Depends(threshold_service_dep)):
    return [ThresholdBandOut.model_validate(b) for b in service.get_default_thresholds(sensor_type)]
