from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from packages.shared.schemas.request_v1 import ChangeRequestV1, change_request_adapter
from services.api.app.services.storage_base import PersistenceAdapter
from services.api.app.services.storage_memory import InMemoryStorageBackend

_COMMON = {
    "submitted_by": "jane.doe@un.org",
    "organization": "UNDP",
    "justification": "The field office moved and the dataset is out of date.",
}

_VARIANTS: dict[str, dict[str, Any]] = {
    "add": {
        "name": "Springfield",
        "country": "Freedonia",
        "country_code": "1234",
        "coordinates": {"latitude": 10.5, "longitude": 20.25},
    },
    "update": {
        "duty_station_code": "GVA",
        "country_code": "2210",
        "current_data": {
            "name": "Geneva",
            "country": "Switzerland",
            "coordinates": {"latitude": 46.2, "longitude": 6.15},
        },
        "proposed_changes": {"name": "Geneve"},
    },
    "remove": {
        "duty_station_code": "OLD",
        "country_code": "1234",
        "current_data": {"name": "Old Town", "country": "Freedonia"},
    },
    "coordinate_update": {
        "duty_station_code": "NBO",
        "country_code": "1420",
        "station_name": "Nairobi",
        "current_coordinates": {"latitude": 0.0, "longitude": 0.0},
        "proposed_coordinates": {"latitude": -1.29, "longitude": 36.82},
    },
}


def _request_payload(request_type: str = "add", **overrides: Any) -> dict[str, Any]:
    payload = {"request_type": request_type, **_COMMON, **_VARIANTS[request_type]}
    payload.update(overrides)
    return payload


class FakeSleep:
    """Records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def request_payload() -> Callable[..., dict[str, Any]]:
    return _request_payload


@pytest.fixture()
def make_request() -> Callable[..., ChangeRequestV1]:
    def _make(request_type: str = "add", **overrides: Any) -> ChangeRequestV1:
        return change_request_adapter.validate_python(_request_payload(request_type, **overrides))

    return _make


@pytest.fixture()
def backend() -> InMemoryStorageBackend:
    return InMemoryStorageBackend()


@pytest.fixture()
def storage(backend: InMemoryStorageBackend) -> PersistenceAdapter:
    return PersistenceAdapter(backend)


@pytest.fixture()
def fake_sleep() -> FakeSleep:
    return FakeSleep()
