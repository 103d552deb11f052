from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    db_path = tmp_path / "dsr_api.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("DSR_DB_AUTO_CREATE", "true")
    monkeypatch.setenv("DSR_STORAGE", "sql")
    monkeypatch.setenv("DSR_DELIVERY_ADAPTER", "mock")
    monkeypatch.setenv("DSR_BATCH_DELAY_SECONDS", "0")

    from services.api.app.main import app
    from services.api.app.services.container import reset_services

    reset_services()
    with TestClient(app) as c:
        yield c
    reset_services()


def _add(client: TestClient, request_payload, request_type: str = "add", **overrides) -> dict:
    response = client.post(
        "/v1/basket", json={"request": request_payload(request_type, **overrides)}
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_add_list_reorder_remove(client: TestClient, request_payload) -> None:
    a = _add(client, request_payload, "add")
    b = _add(client, request_payload, "update")
    c = _add(client, request_payload, "coordinate_update")
    assert [a["priority"], b["priority"], c["priority"]] == [1, 2, 3]

    reordered = client.post(f"/v1/basket/{c['id']}/reorder", json={"priority": 1})
    assert reordered.status_code == 200
    assert [i["id"] for i in reordered.json()] == [c["id"], a["id"], b["id"]]

    removed = client.delete(f"/v1/basket/{a['id']}")
    assert removed.status_code == 200
    assert [(i["id"], i["priority"]) for i in removed.json()] == [(c["id"], 1), (b["id"], 2)]

    listed = client.get("/v1/basket").json()
    assert [i["id"] for i in listed] == [c["id"], b["id"]]


def test_add_rejects_invalid_request(client: TestClient, request_payload) -> None:
    response = client.post(
        "/v1/basket", json={"request": request_payload(justification="too short")}
    )
    assert response.status_code == 422

    blank = client.post("/v1/basket", json={"request": request_payload(submitted_by="   ")})
    assert blank.status_code == 422
    assert "submitted_by" in blank.json()["detail"]

    assert client.get("/v1/basket").json() == []


def test_unknown_item_is_404(client: TestClient) -> None:
    assert client.delete("/v1/basket/nope").status_code == 404
    assert client.post("/v1/basket/nope/reorder", json={"priority": 1}).status_code == 404
    assert client.post("/v1/basket/nope/status", json={"status": "approved"}).status_code == 404


def test_stats_and_status(client: TestClient, request_payload) -> None:
    a = _add(client, request_payload, "add")
    _add(client, request_payload, "remove")

    updated = client.post(f"/v1/basket/{a['id']}/status", json={"status": "approved"})
    assert updated.status_code == 200

    stats = client.get("/v1/basket/stats").json()
    assert stats["total_items"] == 2
    assert stats["pending_items"] == 1
    assert stats["remove_requests"] == 1


def test_export_import_and_clear(client: TestClient, request_payload) -> None:
    _add(client, request_payload, "add")
    _add(client, request_payload, "remove")

    exported = client.get("/v1/basket/export")
    assert exported.status_code == 200
    assert exported.headers["content-type"].startswith("application/json")

    assert client.delete("/v1/basket").status_code == 204
    assert client.get("/v1/basket").json() == []

    imported = client.post("/v1/basket/import", json={"snapshot": exported.text})
    assert imported.status_code == 200
    assert [i["request"]["request_type"] for i in imported.json()] == ["add", "remove"]

    bad = client.post("/v1/basket/import", json={"snapshot": "{}"})
    assert bad.status_code == 422


def test_submit_moves_items_to_history(client: TestClient, request_payload) -> None:
    for _ in range(17):
        _add(client, request_payload, "add")

    response = client.post("/v1/submissions")
    assert response.status_code == 200
    result = response.json()
    assert result["success"] is True
    assert result["batch_count"] == 2
    assert result["submitted_count"] == 17

    assert client.get("/v1/basket").json() == []
    history = client.get("/v1/history").json()
    assert len(history) == 17
    assert len({h["confirmation_id"] for h in history}) == 2
    assert len(client.get("/v1/history", params={"limit": 5}).json()) == 5
    assert client.get("/v1/history", params={"limit": -1}).status_code == 422

    assert client.delete("/v1/history").status_code == 204
    assert client.get("/v1/history").json() == []


def test_submit_selected_items(client: TestClient, request_payload) -> None:
    a = _add(client, request_payload, "add")
    b = _add(client, request_payload, "remove")

    response = client.post("/v1/submissions", json={"item_ids": [b["id"]]})
    assert response.json()["submitted_count"] == 1
    assert [i["id"] for i in client.get("/v1/basket").json()] == [a["id"]]

    unknown = client.post("/v1/submissions", json={"item_ids": ["nope"]})
    assert unknown.status_code == 404


def test_submit_selected_rejects_non_pending(client: TestClient, request_payload) -> None:
    a = _add(client, request_payload, "add")
    client.post(f"/v1/basket/{a['id']}/status", json={"status": "rejected"})

    response = client.post("/v1/submissions", json={"item_ids": [a["id"]]})

    assert response.status_code == 409
    assert a["id"] in response.json()["detail"]
    assert client.get("/v1/history").json() == []
    assert len(client.get("/v1/basket").json()) == 1


def test_submit_empty_basket(client: TestClient) -> None:
    result = client.post("/v1/submissions").json()

    assert result["success"] is False
    assert result["errors"] == ["No items to submit"]


def test_submit_while_in_flight_is_409(client: TestClient, request_payload) -> None:
    from services.api.app.services.container import get_services

    _add(client, request_payload, "add")
    pipeline = get_services().pipeline
    pipeline._in_flight = True
    try:
        response = client.post("/v1/submissions")
    finally:
        pipeline._in_flight = False

    assert response.status_code == 409


def test_station_lookup(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from services.api.app.services.container import get_services
    from services.api.app.services.reference_data import ReferenceDataError

    reference = get_services().reference
    monkeypatch.setattr(
        reference,
        "_fetch",
        lambda url: "CITY_CODE,COUNTRY_CODE,CITY_NAME,LATITUDE,LONGITUDE\nGVA,2210,Geneva,46.2,6.1\n",
    )

    found = client.get("/v1/stations/gva")
    assert found.status_code == 200
    assert found.json()["name"] == "Geneva"
    assert client.get("/v1/stations/XYZ").status_code == 404

    def unavailable(url: str) -> str:
        raise ReferenceDataError("HTTP 503")

    reference._cache.clear()
    monkeypatch.setattr(reference, "_fetch", unavailable)
    assert client.get("/v1/stations/GVA").status_code == 502
