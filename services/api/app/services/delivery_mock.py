from __future__ import annotations

import logging
from collections.abc import Iterable

from services.api.app.services.delivery_base import (
    SUCCESS_STATUS,
    DeliveryPayload,
    DeliveryReceipt,
    DeliveryTransportError,
)

logger = logging.getLogger(__name__)


class MockDeliveryAdapter:
    """Simulated delivery: logs each payload and accepts it.

    Used when no delivery service is configured, in tests and in local dev.

    ``fail_calls`` lists 1-based call numbers to fail. Those calls answer with
    ``fail_status``, or raise ``DeliveryTransportError`` when ``fail_status`` is None.
    """

    vendor = "MOCK"

    def __init__(
        self, fail_calls: Iterable[int] = (), *, fail_status: int | None = 500
    ) -> None:
        self.sent: list[DeliveryPayload] = []
        self.calls = 0
        self._fail_calls = set(fail_calls)
        self._fail_status = fail_status

    async def send(self, payload: DeliveryPayload) -> DeliveryReceipt:
        self.calls += 1
        if self.calls in self._fail_calls:
            logger.info("[delivery simulation] Failing call %d (%s)", self.calls, payload.batch_label)
            if self._fail_status is None:
                raise DeliveryTransportError(self.vendor, f"simulated failure on call {self.calls}")
            return DeliveryReceipt(status=self._fail_status, text="Simulated failure")

        self.sent.append(payload)
        logger.info(
            "[delivery simulation] Would send %s with %d request(s) from %s",
            payload.batch_label,
            payload.request_count,
            payload.from_name,
        )
        return DeliveryReceipt(status=SUCCESS_STATUS, text="OK")
