from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class _CacheEntry:
    value: Any
    inserted_at: float
    ttl_seconds: float


class TTLCache:
    """String-keyed cache whose entries expire ``ttl_seconds`` after insertion.

    Owned by whichever service needs it and passed in explicitly. ``clock`` returns
    seconds and defaults to ``time.monotonic``.
    """

    def __init__(
        self, ttl_seconds: float = 3600.0, *, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.inserted_at >= entry.ttl_seconds:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        self._entries[key] = _CacheEntry(
            value=value,
            inserted_at=self._clock(),
            ttl_seconds=self._ttl_seconds if ttl_seconds is None else ttl_seconds,
        )

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
