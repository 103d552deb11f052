"""Shared basket, history and submission schemas (v1).

Basket items and history entries are persisted as JSON arrays of these models, so
field names here are also the storage format.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from packages.shared.schemas.request_v1 import ChangeRequestV1, RequestType


class RequestStatusV1(str, Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class BasketItemV1(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    request: ChangeRequestV1
    added_at: datetime
    priority: int = Field(..., ge=1)
    status: RequestStatusV1 = RequestStatusV1.PENDING


class RequestSummaryV1(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    request_type: RequestType
    request_date: datetime
    submitted_by: str
    organization: str
    justification: str
    status: RequestStatusV1


class HistoryEntryV1(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    request: RequestSummaryV1
    submitted_at: datetime
    confirmation_id: str | None = None
    status: RequestStatusV1 = RequestStatusV1.SUBMITTED


class SubmissionResultV1(BaseModel):
    success: bool
    submitted_at: datetime
    errors: list[str] = Field(default_factory=list)

    # One confirmation id per delivered batch, in batch order.
    confirmation_ids: list[str] = Field(default_factory=list)
    submitted_count: int = 0
    failed_count: int = 0
    batch_count: int = 0


class BasketStatsV1(BaseModel):
    total_items: int
    pending_items: int
    add_requests: int
    update_requests: int
    remove_requests: int
    coordinate_update_requests: int
