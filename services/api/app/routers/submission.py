from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from packages.shared.schemas.basket_v1 import RequestStatusV1, SubmissionResultV1
from services.api.app.models.basket import SubmissionRequest
from services.api.app.services.container import Services, get_services
from services.api.app.services.pipeline import SubmissionInProgressError

router = APIRouter()


@router.post("/v1/submissions", response_model=SubmissionResultV1)
async def submit_basket(
    payload: SubmissionRequest | None = None,
    services: Services = Depends(get_services),
) -> SubmissionResultV1:
    items = None
    if payload is not None and payload.item_ids is not None:
        by_id = {item.id: item for item in services.basket.list()}
        unknown = [item_id for item_id in payload.item_ids if item_id not in by_id]
        if unknown:
            raise HTTPException(status_code=404, detail=f"Unknown basket item(s): {', '.join(unknown)}")
        not_pending = [
            item_id
            for item_id in payload.item_ids
            if by_id[item_id].status != RequestStatusV1.PENDING
        ]
        if not_pending:
            raise HTTPException(
                status_code=409, detail=f"Basket item(s) not pending: {', '.join(not_pending)}"
            )
        items = [by_id[item_id] for item_id in payload.item_ids]

    try:
        return await services.pipeline.submit(items)
    except SubmissionInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
