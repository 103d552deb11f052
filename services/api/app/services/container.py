from __future__ import annotations

import os
from dataclasses import dataclass

from services.api.app.services.basket import BasketStore
from services.api.app.services.cache import TTLCache
from services.api.app.services.delivery_factory import get_delivery_adapter
from services.api.app.services.history import HistoryLog
from services.api.app.services.pipeline import (
    DEFAULT_BATCH_DELAY_SECONDS,
    DEFAULT_BATCH_SIZE,
    SubmissionPipeline,
)
from services.api.app.services.rate_limiter import RateLimiter
from services.api.app.services.reference_data import DEFAULT_STATIONS_CSV_URL, ReferenceDataClient
from services.api.app.services.storage_factory import get_persistence_adapter


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "y"}


@dataclass
class Services:
    basket: BasketStore
    history: HistoryLog
    pipeline: SubmissionPipeline
    reference: ReferenceDataClient


_SERVICES: Services | None = None


def build_services() -> Services:
    """Wire the basket, history, pipeline and reference client from env vars.

    Env vars:
    - DSR_STORAGE, DATABASE_URL (see storage_factory)
    - DSR_DELIVERY_ADAPTER and DSR_EMAILJS_* (see delivery_factory)
    - DSR_RENUMBER_ON_REMOVE (default: true)
    - DSR_BATCH_SIZE (default: 15)
    - DSR_BATCH_DELAY_SECONDS (default: 2.0)
    - DSR_MAX_ATTEMPTS (default: 1, i.e. failed batches wait for a manual retry)
    - DSR_REFERENCE_CSV_URL
    - DSR_REFERENCE_CACHE_TTL_SECONDS (default: 3600)
    """

    storage = get_persistence_adapter()
    basket = BasketStore(
        storage,
        renumber_on_remove=_parse_bool(os.getenv("DSR_RENUMBER_ON_REMOVE", "true")),
    )
    history = HistoryLog(storage)

    pipeline = SubmissionPipeline(
        basket,
        history,
        get_delivery_adapter(),
        batch_size=int(os.getenv("DSR_BATCH_SIZE", str(DEFAULT_BATCH_SIZE))),
        rate_limiter=RateLimiter(
            float(os.getenv("DSR_BATCH_DELAY_SECONDS", str(DEFAULT_BATCH_DELAY_SECONDS)))
        ),
        max_attempts=int(os.getenv("DSR_MAX_ATTEMPTS", "1")),
    )

    reference = ReferenceDataClient(
        TTLCache(float(os.getenv("DSR_REFERENCE_CACHE_TTL_SECONDS", "3600"))),
        url=os.getenv("DSR_REFERENCE_CSV_URL", DEFAULT_STATIONS_CSV_URL),
    )

    return Services(basket=basket, history=history, pipeline=pipeline, reference=reference)


def get_services() -> Services:
    """Return the process-wide services, building them on first use."""

    global _SERVICES

    if _SERVICES is None:
        _SERVICES = build_services()
    return _SERVICES


def reset_services() -> None:
    global _SERVICES
    _SERVICES = None
