from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Protocol

# The only status the delivery service reports for an accepted message.
SUCCESS_STATUS = 200


class DeliveryError(Exception):
    """Base class for delivery adapter errors."""


class DeliveryNotConfiguredError(DeliveryError):
    def __init__(self, vendor: str, missing: list[str]) -> None:
        super().__init__(f"{vendor} is not configured: missing {', '.join(missing)}")
        self.vendor = vendor
        self.missing = missing


class DeliveryTransportError(DeliveryError):
    def __init__(self, vendor: str, reason: str) -> None:
        super().__init__(f"{vendor} transport failed: {reason}")
        self.vendor = vendor
        self.reason = reason


@dataclass(frozen=True, slots=True)
class DeliveryPayload:
    to_name: str
    from_name: str
    organization: str
    request_count: int
    request_summary: str
    request_details: str
    request_csv: str
    request_date: str
    batch_label: str
    reply_to: str = ""

    def as_template_params(self) -> dict[str, str | int]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class DeliveryReceipt:
    status: int
    text: str = ""

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS_STATUS


class DeliveryAdapter(Protocol):
    vendor: str

    async def send(self, payload: DeliveryPayload) -> DeliveryReceipt: ...
