"""Shared change request schema (v1).

A change request proposes one edit to the duty station reference dataset. The four
variants share the submitter fields and are told apart by ``request_type``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

RequestType = Literal["add", "update", "remove", "coordinate_update"]

REQUEST_TYPES: tuple[RequestType, ...] = ("add", "update", "remove", "coordinate_update")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CoordinatesV1(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class StationSnapshotV1(BaseModel):
    """The current values of an existing dataset entry, as shown to the submitter."""

    name: str
    country: str
    common_name: str | None = None
    coordinates: CoordinatesV1 | None = None


class ProposedChangesV1(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    common_name: str | None = Field(default=None, max_length=100)
    coordinates: CoordinatesV1 | None = None


class _ChangeRequestBaseV1(BaseModel):
    request_date: datetime = Field(default_factory=utcnow)
    submitted_by: str = Field(..., min_length=1)
    organization: str = Field(..., min_length=1)
    justification: str = Field(..., min_length=10, max_length=1000)


class AddStationRequestV1(_ChangeRequestBaseV1):
    request_type: Literal["add"] = "add"

    name: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=1)
    country_code: str = Field(..., min_length=1, max_length=10)
    common_name: str | None = Field(default=None, max_length=100)
    coordinates: CoordinatesV1

    # Three uppercase letters; left empty the reviewers assign a code.
    proposed_code: str | None = Field(default=None, pattern=r"^([A-Z]{3})?$")


class UpdateStationRequestV1(_ChangeRequestBaseV1):
    request_type: Literal["update"] = "update"

    duty_station_code: str = Field(..., min_length=1, max_length=10)
    country_code: str = Field(..., min_length=1, max_length=10)
    current_data: StationSnapshotV1
    proposed_changes: ProposedChangesV1


class RemoveStationRequestV1(_ChangeRequestBaseV1):
    request_type: Literal["remove"] = "remove"

    duty_station_code: str = Field(..., min_length=1)
    country_code: str = Field(..., min_length=1, max_length=10)
    current_data: StationSnapshotV1


class CoordinateUpdateRequestV1(_ChangeRequestBaseV1):
    request_type: Literal["coordinate_update"] = "coordinate_update"

    duty_station_code: str = Field(..., min_length=1)
    country_code: str = Field(..., min_length=1, max_length=10)
    station_name: str
    current_coordinates: CoordinatesV1
    proposed_coordinates: CoordinatesV1


ChangeRequestV1 = Annotated[
    Union[
        AddStationRequestV1,
        UpdateStationRequestV1,
        RemoveStationRequestV1,
        CoordinateUpdateRequestV1,
    ],
    Field(discriminator="request_type"),
]

change_request_adapter: TypeAdapter[ChangeRequestV1] = TypeAdapter(ChangeRequestV1)
