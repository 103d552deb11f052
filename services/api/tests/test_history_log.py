from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

from packages.shared.schemas.basket_v1 import (
    BasketItemV1,
    HistoryEntryV1,
    RequestStatusV1,
    RequestSummaryV1,
)
from services.api.app.services.history import MAX_HISTORY_ENTRIES, HistoryLog, history_entry_for
from services.api.app.services.storage_base import HISTORY_STORAGE_KEY, PersistenceAdapter
from services.api.app.services.storage_memory import InMemoryStorageBackend

_T0 = datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc)


def _entry(n: int) -> HistoryEntryV1:
    return HistoryEntryV1(
        id=f"item-{n}",
        request=RequestSummaryV1(
            id=f"item-{n}",
            request_type="add",
            request_date=_T0,
            submitted_by="jane.doe@un.org",
            organization="UNDP",
            justification="New field office opened in the city.",
            status=RequestStatusV1.SUBMITTED,
        ),
        submitted_at=_T0 + timedelta(minutes=n),
        confirmation_id=f"BATCH-{n}",
    )


def test_append_inserts_newest_first(storage: PersistenceAdapter) -> None:
    log = HistoryLog(storage)

    log.append(_entry(1))
    log.append(_entry(2))

    assert [e.id for e in log.list()] == ["item-2", "item-1"]


def test_capacity_evicts_exactly_the_oldest(storage: PersistenceAdapter) -> None:
    log = HistoryLog(storage)
    for n in range(MAX_HISTORY_ENTRIES):
        log.append(_entry(n))
    assert len(log) == MAX_HISTORY_ENTRIES

    log.append(_entry(MAX_HISTORY_ENTRIES))

    ids = [e.id for e in log.list()]
    assert len(ids) == MAX_HISTORY_ENTRIES
    assert ids[0] == f"item-{MAX_HISTORY_ENTRIES}"
    assert "item-0" not in ids
    assert ids[-1] == "item-1"


def test_save_load_round_trip(storage: PersistenceAdapter) -> None:
    log = HistoryLog(storage)
    for n in range(3):
        log.append(_entry(n))

    reloaded = HistoryLog(storage).list()

    assert reloaded == log.list()
    assert reloaded[0].submitted_at == _T0 + timedelta(minutes=2)
    assert reloaded[0].submitted_at.tzinfo is not None
    assert reloaded[0].request.request_date == _T0


def test_load_drops_unparseable_entries(backend: InMemoryStorageBackend) -> None:
    storage = PersistenceAdapter(backend)
    log = HistoryLog(storage)
    log.append(_entry(1))
    log.append(_entry(2))
    records = json.loads(backend.read(HISTORY_STORAGE_KEY))
    records[1]["submitted_at"] = "yesterday-ish"
    backend.write(HISTORY_STORAGE_KEY, json.dumps(records))

    assert [e.id for e in log.load()] == ["item-2"]


def test_corrupt_history_loads_empty(backend: InMemoryStorageBackend) -> None:
    backend.write(HISTORY_STORAGE_KEY, "[{]")

    assert HistoryLog(PersistenceAdapter(backend)).list() == []


def test_load_truncates_oversized_log(backend: InMemoryStorageBackend) -> None:
    storage = PersistenceAdapter(backend)
    small = HistoryLog(storage, capacity=5)
    big = HistoryLog(storage, capacity=10)
    for n in range(10):
        big.append(_entry(n))

    assert len(small.load()) == 5


def test_record_builds_entries_from_basket_items(storage: PersistenceAdapter, make_request) -> None:
    log = HistoryLog(storage)
    item = BasketItemV1(
        id="abc",
        request=make_request("remove"),
        added_at=_T0,
        priority=1,
        status=RequestStatusV1.SUBMITTED,
    )

    (entry,) = log.record([item], "BATCH-XYZ")

    assert entry == history_entry_for(item, "BATCH-XYZ").model_copy(
        update={"submitted_at": entry.submitted_at}
    )
    assert entry.id == "abc"
    assert entry.confirmation_id == "BATCH-XYZ"
    assert entry.request.request_type == "remove"
    assert entry.status == RequestStatusV1.SUBMITTED
    assert log.list() == [entry]


def test_clear(storage: PersistenceAdapter) -> None:
    log = HistoryLog(storage)
    log.append(_entry(1))

    log.clear()

    assert HistoryLog(storage).list() == []
