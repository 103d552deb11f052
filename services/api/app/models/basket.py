from __future__ import annotations

from pydantic import BaseModel, Field

from packages.shared.schemas.basket_v1 import RequestStatusV1
from packages.shared.schemas.request_v1 import ChangeRequestV1


class BasketAddRequest(BaseModel):
    request: ChangeRequestV1


class BasketReorderRequest(BaseModel):
    priority: int = Field(..., ge=1)


class BasketStatusRequest(BaseModel):
    status: RequestStatusV1


class BasketImportRequest(BaseModel):
    snapshot: str = Field(..., min_length=1)


class SubmissionRequest(BaseModel):
    # Submit only these basket items; all pending items when omitted.
    item_ids: list[str] | None = None
