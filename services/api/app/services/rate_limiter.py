from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class RateLimiter:
    """Runs async actions one at a time with a fixed gap between consecutive starts.

    The gap is only ever taken *between* actions: never before the first, never after
    the last. ``sleep`` is injectable so tests can run against a fake clock.
    """

    def __init__(self, min_interval_seconds: float, *, sleep: Sleep = asyncio.sleep) -> None:
        if min_interval_seconds < 0:
            raise ValueError("min_interval_seconds must be >= 0")
        self._min_interval_seconds = min_interval_seconds
        self._sleep = sleep

    @property
    def min_interval_seconds(self) -> float:
        return self._min_interval_seconds

    async def pause(self) -> None:
        if self._min_interval_seconds > 0:
            await self._sleep(self._min_interval_seconds)

    async def run(self, actions: Iterable[Callable[[], Awaitable[T]]]) -> list[T]:
        results: list[T] = []
        for index, action in enumerate(actions):
            if index:
                await self.pause()
            results.append(await action())
        return results
