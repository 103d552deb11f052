from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from packages.shared.schemas.basket_v1 import (
    BasketItemV1,
    HistoryEntryV1,
    RequestStatusV1,
    RequestSummaryV1,
)
from packages.shared.schemas.request_v1 import utcnow
from services.api.app.services.serialization import dump_models, load_models
from services.api.app.services.storage_base import HISTORY_STORAGE_KEY, PersistenceAdapter

logger = logging.getLogger(__name__)

MAX_HISTORY_ENTRIES = 100


def history_entry_for(item: BasketItemV1, confirmation_id: str | None = None) -> HistoryEntryV1:
    request = item.request
    return HistoryEntryV1(
        id=item.id,
        request=RequestSummaryV1(
            id=item.id,
            request_type=request.request_type,
            request_date=request.request_date,
            submitted_by=request.submitted_by,
            organization=request.organization,
            justification=request.justification,
            status=item.status,
        ),
        submitted_at=utcnow(),
        confirmation_id=confirmation_id,
        status=RequestStatusV1.SUBMITTED,
    )


class HistoryLog:
    """Newest-first audit trail of submitted requests, capped at ``capacity`` entries."""

    def __init__(
        self,
        storage: PersistenceAdapter,
        *,
        capacity: int = MAX_HISTORY_ENTRIES,
        storage_key: str = HISTORY_STORAGE_KEY,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self._storage = storage
        self._storage_key = storage_key
        self._capacity = capacity
        self._lock = threading.RLock()
        self._entries: list[HistoryEntryV1] = []
        self.load()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def list(self) -> list[HistoryEntryV1]:
        return list(self._entries)

    def load(self) -> list[HistoryEntryV1]:
        entries = load_models(self._storage.get(self._storage_key), HistoryEntryV1, source="history")
        with self._lock:
            self._entries = entries[: self._capacity]
        return list(self._entries)

    def save(self) -> bool:
        return self._storage.set(self._storage_key, dump_models(self._entries))

    def append(self, entry: HistoryEntryV1) -> None:
        self.extend([entry])

    def extend(self, entries: Iterable[HistoryEntryV1]) -> None:
        """Insert each entry at the front in turn, then evict past capacity."""

        with self._lock:
            updated = list(self._entries)
            for entry in entries:
                updated.insert(0, entry)
            evicted = max(len(updated) - self._capacity, 0)
            self._entries = updated[: self._capacity]
            self.save()

        if evicted:
            logger.debug("Evicted %d oldest history entries", evicted)

    def record(
        self, items: Iterable[BasketItemV1], confirmation_id: str | None = None
    ) -> list[HistoryEntryV1]:
        entries = [history_entry_for(item, confirmation_id) for item in items]
        self.extend(entries)
        return entries

    def clear(self) -> None:
        with self._lock:
            self._entries = []
            self.save()
