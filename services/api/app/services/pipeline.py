from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from functools import partial
from typing import TypeVar
from uuid import uuid4

from packages.shared.schemas.basket_v1 import BasketItemV1, RequestStatusV1, SubmissionResultV1
from packages.shared.schemas.request_v1 import utcnow
from services.api.app.services.basket import BasketStore
from services.api.app.services.delivery_base import DeliveryAdapter, DeliveryError
from services.api.app.services.formatting import build_payload
from services.api.app.services.history import HistoryLog
from services.api.app.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 15
DEFAULT_BATCH_DELAY_SECONDS = 2.0
NO_ITEMS_MESSAGE = "No items to submit"


class SubmissionInProgressError(RuntimeError):
    def __init__(self) -> None:
        super().__init__("A submission is already in progress")


def chunk_items(items: Sequence[T], size: int) -> list[list[T]]:
    if size < 1:
        raise ValueError("batch size must be at least 1")
    return [list(items[start : start + size]) for start in range(0, len(items), size)]


def new_confirmation_id() -> str:
    return f"BATCH-{uuid4().hex[:10].upper()}"


@dataclass(frozen=True, slots=True)
class _BatchOutcome:
    index: int
    items: list[BasketItemV1]
    confirmation_id: str | None = None
    error: str | None = None


class SubmissionPipeline:
    """Sends basket items to the delivery adapter in fixed-size batches.

    Batches go out sequentially in item order, spaced by the rate limiter. A failed
    batch does not stop the ones after it, whatever the adapter raised. Delivered items
    leave the basket and enter the history log; items of a failed batch stay in the
    basket as pending so they can be submitted again.

    ``max_attempts`` > 1 retries a failed batch in place before moving on; the default
    of 1 leaves retries to the user.

    The pipeline refuses to start a second submission while one is running. That guard
    is per instance only.
    """

    def __init__(
        self,
        basket: BasketStore,
        history: HistoryLog,
        adapter: DeliveryAdapter,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        rate_limiter: RateLimiter | None = None,
        max_attempts: int = 1,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self._basket = basket
        self._history = history
        self._adapter = adapter
        self._batch_size = batch_size
        self._limiter = rate_limiter or RateLimiter(DEFAULT_BATCH_DELAY_SECONDS)
        self._max_attempts = max_attempts
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def adapter(self) -> DeliveryAdapter:
        return self._adapter

    async def submit(self, items: Sequence[BasketItemV1] | None = None) -> SubmissionResultV1:
        if self._in_flight:
            raise SubmissionInProgressError()

        to_send = list(items) if items is not None else self._basket.pending()
        if not to_send:
            return SubmissionResultV1(
                success=False, submitted_at=utcnow(), errors=[NO_ITEMS_MESSAGE]
            )

        self._in_flight = True
        try:
            batches = chunk_items(to_send, self._batch_size)
            logger.info(
                "Submitting %d item(s) in %d batch(es) via %s",
                len(to_send),
                len(batches),
                self._adapter.vendor,
            )
            outcomes = await self._limiter.run(
                partial(self._deliver_batch, batch, index, len(batches))
                for index, batch in enumerate(batches, start=1)
            )
        finally:
            self._in_flight = False

        errors = [o.error for o in outcomes if o.error is not None]
        delivered = [o for o in outcomes if o.confirmation_id is not None]
        return SubmissionResultV1(
            success=not errors,
            submitted_at=utcnow(),
            errors=errors,
            confirmation_ids=[o.confirmation_id for o in delivered if o.confirmation_id],
            submitted_count=sum(len(o.items) for o in delivered),
            failed_count=sum(len(o.items) for o in outcomes if o.error is not None),
            batch_count=len(batches),
        )

    async def _deliver_batch(
        self, batch: list[BasketItemV1], index: int, total: int
    ) -> _BatchOutcome:
        payload = build_payload(batch, batch_index=index, batch_count=total)
        reason = "not attempted"

        for attempt in range(1, self._max_attempts + 1):
            if attempt > 1:
                await self._limiter.pause()

            try:
                receipt = await self._adapter.send(payload)
            except DeliveryError as e:
                reason = str(e)
                logger.warning(
                    "%s attempt %d/%d failed: %s", payload.batch_label, attempt, self._max_attempts, e
                )
                continue
            except Exception as e:
                reason = str(e) or type(e).__name__
                logger.exception(
                    "%s attempt %d/%d raised", payload.batch_label, attempt, self._max_attempts
                )
                continue

            if receipt.ok:
                confirmation_id = new_confirmation_id()
                self._settle(batch, confirmation_id)
                logger.info(
                    "%s delivered %d item(s), confirmation %s",
                    payload.batch_label,
                    len(batch),
                    confirmation_id,
                )
                return _BatchOutcome(index=index, items=batch, confirmation_id=confirmation_id)

            reason = f"Delivery failed with status: {receipt.status}"
            logger.warning(
                "%s attempt %d/%d rejected with status %d",
                payload.batch_label,
                attempt,
                self._max_attempts,
                receipt.status,
            )

        return _BatchOutcome(index=index, items=batch, error=f"{payload.batch_label}: {reason}")

    def _settle(self, batch: list[BasketItemV1], confirmation_id: str) -> None:
        submitted = [item.model_copy(update={"status": RequestStatusV1.SUBMITTED}) for item in batch]
        self._basket.remove_many(item.id for item in batch)
        self._history.record(submitted, confirmation_id)
