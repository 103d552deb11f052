from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from packages.shared.schemas.basket_v1 import BasketItemV1, BasketStatsV1
from services.api.app.models.basket import (
    BasketAddRequest,
    BasketImportRequest,
    BasketReorderRequest,
    BasketStatusRequest,
)
from services.api.app.services.basket import BasketValidationError
from services.api.app.services.container import Services, get_services

router = APIRouter()


@router.get("/v1/basket", response_model=list[BasketItemV1])
def list_basket(services: Services = Depends(get_services)) -> list[BasketItemV1]:
    return services.basket.list()


@router.post("/v1/basket", response_model=BasketItemV1, status_code=status.HTTP_201_CREATED)
def add_to_basket(
    payload: BasketAddRequest, services: Services = Depends(get_services)
) -> BasketItemV1:
    try:
        return services.basket.add(payload.request)
    except BasketValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.delete("/v1/basket", status_code=status.HTTP_204_NO_CONTENT)
def clear_basket(services: Services = Depends(get_services)) -> Response:
    services.basket.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/v1/basket/stats", response_model=BasketStatsV1)
def basket_stats(services: Services = Depends(get_services)) -> BasketStatsV1:
    return services.basket.stats()


@router.get("/v1/basket/export")
def export_basket(services: Services = Depends(get_services)) -> Response:
    return Response(
        content=services.basket.export_snapshot(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="basket.json"'},
    )


@router.post("/v1/basket/import", response_model=list[BasketItemV1])
def import_basket(
    payload: BasketImportRequest, services: Services = Depends(get_services)
) -> list[BasketItemV1]:
    try:
        return services.basket.import_snapshot(payload.snapshot)
    except BasketValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.delete("/v1/basket/{item_id}", response_model=list[BasketItemV1])
def remove_from_basket(item_id: str, services: Services = Depends(get_services)) -> list[BasketItemV1]:
    if services.basket.get(item_id) is None:
        raise HTTPException(status_code=404, detail="Basket item not found")
    return services.basket.remove(item_id)


@router.post("/v1/basket/{item_id}/reorder", response_model=list[BasketItemV1])
def reorder_basket(
    item_id: str,
    payload: BasketReorderRequest,
    services: Services = Depends(get_services),
) -> list[BasketItemV1]:
    if services.basket.get(item_id) is None:
        raise HTTPException(status_code=404, detail="Basket item not found")
    return services.basket.reorder(item_id, payload.priority)


@router.post("/v1/basket/{item_id}/status", response_model=list[BasketItemV1])
def update_basket_item_status(
    item_id: str,
    payload: BasketStatusRequest,
    services: Services = Depends(get_services),
) -> list[BasketItemV1]:
    if services.basket.get(item_id) is None:
        raise HTTPException(status_code=404, detail="Basket item not found")
    return services.basket.update_status([item_id], payload.status)
