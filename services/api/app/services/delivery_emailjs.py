from __future__ import annotations

import asyncio
import http.client
import json
import logging
import os
import urllib.error
import urllib.request
from dataclasses import dataclass

from services.api.app.services.delivery_base import (
    DeliveryNotConfiguredError,
    DeliveryPayload,
    DeliveryReceipt,
    DeliveryTransportError,
)

logger = logging.getLogger(__name__)

EMAILJS_SEND_URL = "https://api.emailjs.com/api/v1.0/email/send"


@dataclass(frozen=True, slots=True)
class _EmailJSConfig:
    service_id: str
    template_id: str
    public_key: str
    private_key: str
    send_url: str
    timeout_seconds: float

    @property
    def configured(self) -> bool:
        return bool(self.service_id and self.template_id and self.public_key)


class EmailJSDeliveryAdapter:
    """Delivery through the EmailJS REST API.

    Each call sends one templated email to the reviewing team. EmailJS answers 200 with
    the body "OK" for an accepted message; any other status is passed back unchanged so
    the pipeline can record it.

    Env vars:
    - DSR_DELIVERY_ADAPTER=emailjs
    - DSR_EMAILJS_SERVICE_ID (default: service_un_duty_station)
    - DSR_EMAILJS_TEMPLATE_ID (default: template_duty_station)
    - DSR_EMAILJS_PUBLIC_KEY (required)
    - DSR_EMAILJS_PRIVATE_KEY (optional, sent as accessToken)
    - DSR_EMAILJS_URL (default: https://api.emailjs.com/api/v1.0/email/send)
    - DSR_EMAILJS_TIMEOUT_SECONDS (default: 30)
    """

    vendor = "EMAILJS"

    def __init__(self, cfg: _EmailJSConfig) -> None:
        self._cfg = cfg

    @classmethod
    def from_env(cls) -> "EmailJSDeliveryAdapter":
        return cls(
            _EmailJSConfig(
                service_id=os.getenv("DSR_EMAILJS_SERVICE_ID", "service_un_duty_station").strip(),
                template_id=os.getenv("DSR_EMAILJS_TEMPLATE_ID", "template_duty_station").strip(),
                public_key=os.getenv("DSR_EMAILJS_PUBLIC_KEY", "").strip(),
                private_key=os.getenv("DSR_EMAILJS_PRIVATE_KEY", "").strip(),
                send_url=os.getenv("DSR_EMAILJS_URL", EMAILJS_SEND_URL).strip(),
                timeout_seconds=float(os.getenv("DSR_EMAILJS_TIMEOUT_SECONDS", "30")),
            )
        )

    @property
    def configured(self) -> bool:
        return self._cfg.configured

    def config_status(self) -> dict[str, bool]:
        return {
            "configured": self._cfg.configured,
            "service_id": bool(self._cfg.service_id),
            "template_id": bool(self._cfg.template_id),
            "public_key": bool(self._cfg.public_key),
        }

    async def send(self, payload: DeliveryPayload) -> DeliveryReceipt:
        if not self._cfg.configured:
            flags = self.config_status()
            missing = [name for name in ("service_id", "template_id", "public_key") if not flags[name]]
            raise DeliveryNotConfiguredError(self.vendor, missing)

        body: dict[str, object] = {
            "service_id": self._cfg.service_id,
            "template_id": self._cfg.template_id,
            "user_id": self._cfg.public_key,
            "template_params": payload.as_template_params(),
        }
        if self._cfg.private_key:
            body["accessToken"] = self._cfg.private_key

        status, text = await asyncio.to_thread(
            _post_json, self._cfg.send_url, body, self._cfg.timeout_seconds
        )
        if status != 200:
            logger.warning("EmailJS rejected %s: HTTP %d %s", payload.batch_label, status, text)
        return DeliveryReceipt(status=status, text=text)


def _post_json(url: str, body: dict, timeout_seconds: float) -> tuple[int, str]:
    try:
        req = urllib.request.Request(url, method="POST")
        req.add_header("Content-Type", "application/json")
        with urllib.request.urlopen(
            req, data=json.dumps(body).encode("utf-8"), timeout=timeout_seconds
        ) as resp:
            return resp.status, resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as e:
        return e.code, e.read().decode("utf-8", errors="replace")
    except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
        raise DeliveryTransportError(EmailJSDeliveryAdapter.vendor, str(e)) from e
