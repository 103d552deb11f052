from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from typing import Any
from uuid import uuid4

from pydantic import ValidationError

from packages.shared.schemas.basket_v1 import BasketItemV1, BasketStatsV1, RequestStatusV1
from packages.shared.schemas.request_v1 import ChangeRequestV1, change_request_adapter, utcnow
from services.api.app.services.serialization import (
    decode_records,
    dump_models,
    load_models,
    validate_records,
)
from services.api.app.services.storage_base import (
    BASKET_STORAGE_KEY,
    ParseError,
    PersistenceAdapter,
)

logger = logging.getLogger(__name__)

BasketListener = Callable[[list[BasketItemV1]], None]


class BasketValidationError(ValueError):
    """Raised when a request or snapshot is rejected before touching the basket."""


def new_item_id() -> str:
    return uuid4().hex


def _by_priority(item: BasketItemV1) -> int:
    return item.priority


def _renumber(items: list[BasketItemV1]) -> list[BasketItemV1]:
    out: list[BasketItemV1] = []
    for priority, item in enumerate(items, start=1):
        out.append(item if item.priority == priority else item.model_copy(update={"priority": priority}))
    return out


def _coerce_request(request: ChangeRequestV1 | Mapping[str, Any]) -> ChangeRequestV1:
    if isinstance(request, Mapping):
        try:
            request = change_request_adapter.validate_python(request)
        except ValidationError as e:
            raise BasketValidationError(f"Invalid change request: {e}") from e

    missing = [
        field
        for field in ("submitted_by", "justification")
        if not str(getattr(request, field, "") or "").strip()
    ]
    if missing:
        raise BasketValidationError(f"Change request is missing: {', '.join(missing)}")

    return request


class BasketStore:
    """Priority-ordered collection of pending change requests.

    The in-memory list is the source of truth and is always kept sorted by priority.
    Every mutation builds a new list, swaps it in, writes it through the persistence
    adapter and then notifies subscribers with the new snapshot.

    With ``renumber_on_remove`` set (the default) priorities stay a dense 1..N after
    removals too. Without it, removals leave gaps until the next reorder or clear.
    """

    def __init__(
        self,
        storage: PersistenceAdapter,
        *,
        renumber_on_remove: bool = True,
        storage_key: str = BASKET_STORAGE_KEY,
    ) -> None:
        self._storage = storage
        self._storage_key = storage_key
        self._renumber_on_remove = renumber_on_remove
        self._lock = threading.RLock()
        self._listeners: list[BasketListener] = []
        self._items: list[BasketItemV1] = self._load()

    def _load(self) -> list[BasketItemV1]:
        items = load_models(self._storage.get(self._storage_key), BasketItemV1, source="basket")
        return sorted(items, key=_by_priority)

    def reload(self) -> list[BasketItemV1]:
        """Replace the in-memory list with what storage currently holds."""

        with self._lock:
            self._items = self._load()
            self._notify()
            return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def list(self) -> list[BasketItemV1]:
        return list(self._items)

    def pending(self) -> list[BasketItemV1]:
        return [item for item in self._items if item.status == RequestStatusV1.PENDING]

    def get(self, item_id: str) -> BasketItemV1 | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def _next_priority(self) -> int:
        # Equal to len + 1 while priorities are dense; never collides when they are not.
        highest = max((item.priority for item in self._items), default=0)
        return max(highest, len(self._items)) + 1

    def add(self, request: ChangeRequestV1 | Mapping[str, Any]) -> BasketItemV1:
        request = _coerce_request(request)

        with self._lock:
            item = BasketItemV1(
                id=new_item_id(),
                request=request,
                added_at=utcnow(),
                priority=self._next_priority(),
                status=RequestStatusV1.PENDING,
            )
            self._commit([*self._items, item])

        logger.info(
            "Added %s request %s to basket at priority %d",
            request.request_type,
            item.id,
            item.priority,
        )
        return item

    def remove(self, item_id: str) -> list[BasketItemV1]:
        return self.remove_many([item_id])

    def remove_many(self, item_ids: Iterable[str]) -> list[BasketItemV1]:
        ids = set(item_ids)
        with self._lock:
            remaining = [item for item in self._items if item.id not in ids]
            if len(remaining) == len(self._items):
                return list(self._items)

            if self._renumber_on_remove:
                remaining = _renumber(remaining)

            removed = len(self._items) - len(remaining)
            self._commit(remaining)

        logger.info("Removed %d item(s) from basket", removed)
        return list(self._items)

    def reorder(self, item_id: str, new_priority: int) -> list[BasketItemV1]:
        """Move one item to ``new_priority``.

        Items between the old and the new slot shift by one toward the vacated slot;
        everything else keeps its priority. Out-of-range targets are clamped.
        """

        with self._lock:
            target = self.get(item_id)
            if target is None:
                logger.warning("Reorder of unknown basket item %s ignored", item_id)
                return list(self._items)

            upper = max(len(self._items), max(item.priority for item in self._items))
            new_priority = min(max(new_priority, 1), upper)
            old_priority = target.priority
            if new_priority == old_priority:
                return list(self._items)

            reordered: list[BasketItemV1] = []
            for item in self._items:
                priority = item.priority
                if item.id == item_id:
                    priority = new_priority
                elif old_priority < new_priority and old_priority < priority <= new_priority:
                    priority -= 1
                elif new_priority < old_priority and new_priority <= priority < old_priority:
                    priority += 1

                if priority == item.priority:
                    reordered.append(item)
                else:
                    reordered.append(item.model_copy(update={"priority": priority}))

            self._commit(sorted(reordered, key=_by_priority))

        logger.info("Moved basket item %s from priority %d to %d", item_id, old_priority, new_priority)
        return list(self._items)

    def update_status(self, item_ids: Iterable[str], status: RequestStatusV1) -> list[BasketItemV1]:
        ids = set(item_ids)
        with self._lock:
            updated = [
                item.model_copy(update={"status": status}) if item.id in ids else item
                for item in self._items
            ]
            self._commit(updated)
        return list(self._items)

    def clear(self) -> None:
        with self._lock:
            self._commit([])
        logger.info("Basket cleared")

    def stats(self) -> BasketStatsV1:
        items = self._items
        by_type = [item.request.request_type for item in items]
        return BasketStatsV1(
            total_items=len(items),
            pending_items=len([i for i in items if i.status == RequestStatusV1.PENDING]),
            add_requests=by_type.count("add"),
            update_requests=by_type.count("update"),
            remove_requests=by_type.count("remove"),
            coordinate_update_requests=by_type.count("coordinate_update"),
        )

    def export_snapshot(self) -> str:
        return dump_models(self._items, indent=2)

    def import_snapshot(self, text: str) -> list[BasketItemV1]:
        """Append the items of an exported snapshot behind the current ones.

        Imported items get fresh ids and priorities; nothing is deduplicated, so
        importing the same snapshot twice yields two copies of every request.
        """

        try:
            records = decode_records(text)
        except ParseError as e:
            raise BasketValidationError(f"Invalid basket snapshot: {e}") from e

        imported = sorted(validate_records(records, BasketItemV1, source="snapshot"), key=_by_priority)

        with self._lock:
            start = self._next_priority()
            fresh = [
                item.model_copy(update={"id": new_item_id(), "priority": start + offset})
                for offset, item in enumerate(imported)
            ]
            self._commit([*self._items, *fresh])

        logger.info("Imported %d item(s) into basket", len(fresh))
        return list(self._items)

    def subscribe(self, listener: BasketListener) -> Callable[[], None]:
        """Call ``listener`` with the new item list after every mutation."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, items: list[BasketItemV1]) -> None:
        self._items = items
        self._storage.set(self._storage_key, dump_models(items))
        self._notify()

    def _notify(self) -> None:
        snapshot = list(self._items)
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Basket listener %r failed", listener)
