from __future__ import annotations

import logging
import os

from services.api.app.services.delivery_base import DeliveryAdapter
from services.api.app.services.delivery_mock import MockDeliveryAdapter

logger = logging.getLogger(__name__)


def get_delivery_adapter() -> DeliveryAdapter:
    """Select a delivery adapter based on env vars.

    Defaults to the mock adapter so tests and local dev never send real email. With
    DSR_DELIVERY_ADAPTER=emailjs but no public key, delivery falls back to simulation.
    """

    mode = os.getenv("DSR_DELIVERY_ADAPTER", "mock").strip().lower()

    if mode == "mock":
        return MockDeliveryAdapter()

    if mode == "emailjs":
        from services.api.app.services.delivery_emailjs import EmailJSDeliveryAdapter

        adapter = EmailJSDeliveryAdapter.from_env()
        if not adapter.configured:
            logger.warning(
                "EmailJS public key not configured. Submissions will be simulated."
            )
            return MockDeliveryAdapter()
        return adapter

    raise ValueError(f"Unknown DSR_DELIVERY_ADAPTER={mode!r}. Expected mock or emailjs.")
