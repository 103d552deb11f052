from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from packages.shared.schemas.station_v1 import DutyStationV1
from services.api.app.services.container import Services, get_services
from services.api.app.services.reference_data import ReferenceDataError

router = APIRouter()


@router.get("/v1/stations/{code}", response_model=DutyStationV1)
def get_station(code: str, services: Services = Depends(get_services)) -> DutyStationV1:
    try:
        station = services.reference.get_station(code)
    except ReferenceDataError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e

    if station is None:
        raise HTTPException(status_code=404, detail="Duty station not found")
    return station
