from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from packages.shared.schemas.basket_v1 import HistoryEntryV1
from services.api.app.services.container import Services, get_services

router = APIRouter()


@router.get("/v1/history", response_model=list[HistoryEntryV1])
def list_history(
    limit: int | None = Query(default=None, ge=0),
    services: Services = Depends(get_services),
) -> list[HistoryEntryV1]:
    entries = services.history.list()
    return entries[:limit] if limit is not None else entries


@router.delete("/v1/history", status_code=status.HTTP_204_NO_CONTENT)
def clear_history(services: Services = Depends(get_services)) -> Response:
    services.history.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
