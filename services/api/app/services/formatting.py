"""Rendering of basket batches into delivery payloads.

Each batch goes out with a human-readable section per request and a CSV block of the
same requests that reviewers can paste into a spreadsheet.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence

from packages.shared.schemas.basket_v1 import BasketItemV1
from packages.shared.schemas.request_v1 import (
    AddStationRequestV1,
    ChangeRequestV1,
    CoordinateUpdateRequestV1,
    RemoveStationRequestV1,
    RequestType,
    UpdateStationRequestV1,
    utcnow,
)
from services.api.app.services.delivery_base import DeliveryPayload

REVIEW_TEAM_NAME = "UN CEB Duty Station Team"

REQUEST_TYPE_LABELS: dict[RequestType, str] = {
    "add": "Add New Duty Station",
    "update": "Update Existing Duty Station",
    "remove": "Remove Duty Station",
    "coordinate_update": "Correct Duty Station Coordinates",
}

_SEPARATOR = "=" * 51

CSV_COLUMNS = (
    "request_type",
    "duty_station_code",
    "country_code",
    "name",
    "common_name",
    "latitude",
    "longitude",
    "submitted_by",
    "organization",
    "request_date",
    "justification",
)


def format_request_type(request_type: RequestType) -> str:
    return REQUEST_TYPE_LABELS.get(request_type, request_type)


def _date(request: ChangeRequestV1) -> str:
    return request.request_date.date().isoformat()


def format_request_details(request: ChangeRequestV1) -> str:
    lines = [
        f"Request Type: {format_request_type(request.request_type)}",
        f"Requested By: {request.submitted_by}",
        f"Organization: {request.organization}",
        f"Request Date: {_date(request)}",
        "",
        "Request Details:",
    ]

    if isinstance(request, AddStationRequestV1):
        if request.proposed_code:
            lines.append(f"  Proposed Code: {request.proposed_code}")
        lines.append(f"  Name: {request.name}")
        lines.append(f"  Country Code: {request.country_code}")
        lines.append(f"  Country: {request.country}")
        if request.common_name:
            lines.append(f"  Common Name: {request.common_name}")
        lines.append(f"  Latitude: {request.coordinates.latitude}")
        lines.append(f"  Longitude: {request.coordinates.longitude}")

    elif isinstance(request, UpdateStationRequestV1):
        changes = request.proposed_changes
        lines.append(f"  Duty Station Code: {request.duty_station_code}")
        lines.append(f"  Current Name: {request.current_data.name}")
        if changes.name:
            lines.append(f"  New Name: {changes.name}")
        lines.append(f"  Country Code: {request.country_code}")
        if changes.common_name:
            lines.append(f"  New Common Name: {changes.common_name}")
        if changes.coordinates is not None:
            lines.append(f"  New Latitude: {changes.coordinates.latitude}")
            lines.append(f"  New Longitude: {changes.coordinates.longitude}")

    elif isinstance(request, RemoveStationRequestV1):
        lines.append(f"  Duty Station Code: {request.duty_station_code}")
        lines.append(f"  Name: {request.current_data.name}")
        lines.append(f"  Country: {request.current_data.country}")

    elif isinstance(request, CoordinateUpdateRequestV1):
        lines.append(f"  Duty Station Code: {request.duty_station_code}")
        lines.append(f"  Name: {request.station_name}")
        lines.append(f"  Current Latitude: {request.current_coordinates.latitude}")
        lines.append(f"  Current Longitude: {request.current_coordinates.longitude}")
        lines.append(f"  New Latitude: {request.proposed_coordinates.latitude}")
        lines.append(f"  New Longitude: {request.proposed_coordinates.longitude}")

    lines.append("")
    lines.append("Justification:")
    lines.append(request.justification)

    return "\n".join(lines)


def format_batch_details(items: Sequence[BasketItemV1]) -> str:
    lines = [f"Total Requests: {len(items)}", "", _SEPARATOR, ""]

    for index, item in enumerate(items, start=1):
        lines.append(f"REQUEST {index} of {len(items)}:")
        lines.append("")
        lines.append(format_request_details(item.request))
        lines.append("")
        lines.append(_SEPARATOR)
        lines.append("")

    return "\n".join(lines)


def batch_summary(items: Sequence[BasketItemV1]) -> str:
    lines = ["Request Summary:", f"  Total Requests: {len(items)}"]

    types = [item.request.request_type for item in items]
    for request_type, label in REQUEST_TYPE_LABELS.items():
        count = types.count(request_type)
        if count:
            lines.append(f"  - {label}: {count}")

    return "\n".join(lines)


def _csv_row(request: ChangeRequestV1) -> dict[str, object]:
    row: dict[str, object] = {
        "request_type": request.request_type,
        "submitted_by": request.submitted_by,
        "organization": request.organization,
        "request_date": _date(request),
        "justification": request.justification,
    }

    if isinstance(request, AddStationRequestV1):
        row.update(
            duty_station_code=request.proposed_code or "",
            country_code=request.country_code,
            name=request.name,
            common_name=request.common_name or "",
            latitude=request.coordinates.latitude,
            longitude=request.coordinates.longitude,
        )
    elif isinstance(request, UpdateStationRequestV1):
        coords = request.proposed_changes.coordinates
        row.update(
            duty_station_code=request.duty_station_code,
            country_code=request.country_code,
            name=request.proposed_changes.name or request.current_data.name,
            common_name=request.proposed_changes.common_name or "",
            latitude=coords.latitude if coords else "",
            longitude=coords.longitude if coords else "",
        )
    elif isinstance(request, RemoveStationRequestV1):
        row.update(
            duty_station_code=request.duty_station_code,
            country_code=request.country_code,
            name=request.current_data.name,
            common_name=request.current_data.common_name or "",
        )
    elif isinstance(request, CoordinateUpdateRequestV1):
        row.update(
            duty_station_code=request.duty_station_code,
            country_code=request.country_code,
            name=request.station_name,
            latitude=request.proposed_coordinates.latitude,
            longitude=request.proposed_coordinates.longitude,
        )

    return row


def requests_csv(items: Sequence[BasketItemV1]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_COLUMNS, restval="", lineterminator="\n")
    writer.writeheader()
    for item in items:
        writer.writerow(_csv_row(item.request))
    return buf.getvalue()


def build_payload(
    items: Sequence[BasketItemV1], *, batch_index: int, batch_count: int
) -> DeliveryPayload:
    if not items:
        raise ValueError("cannot build a payload for an empty batch")

    first = items[0].request
    return DeliveryPayload(
        to_name=REVIEW_TEAM_NAME,
        from_name=first.submitted_by,
        organization=first.organization,
        request_count=len(items),
        request_summary=batch_summary(items),
        request_details=format_batch_details(items),
        request_csv=requests_csv(items),
        request_date=utcnow().date().isoformat(),
        batch_label=f"Batch {batch_index}/{batch_count}",
    )
