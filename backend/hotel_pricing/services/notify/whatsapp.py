"""
Send admin messages through a WhatsApp HTTP gateway.
Set WHATSAPP_API_URL (and optionally WHATSAPP_API_TOKEN) plus APPROVAL_WHATSAPP_NUMBER in .env.
If not configured, notify no-ops (logs and returns).
"""
import logging
from typing import Any

import httpx

from hotel_pricing.config import Settings
from hotel_pricing.core.errors import NotificationError

logger = logging.getLogger(__name__)


class WhatsAppNotifier:
    """POSTs {phone, message, type} to the gateway. Raises NotificationError on delivery failure."""

    def __init__(
        self,
        api_url: str,
        *,
        api_token: str = "",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_url = (api_url or "").strip()
        self.api_token = (api_token or "").strip()
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "WhatsAppNotifier":
        return cls(settings.whatsapp_api_url, api_token=settings.whatsapp_api_token)

    def is_configured(self) -> bool:
        return bool(self.api_url)

    def _headers(self) -> dict[str, str]:
        h = {"Content-Type": "application/json"}
        if self.api_token:
            h["Authorization"] = f"Bearer {self.api_token}"
        return h

    def notify(self, payload: dict[str, Any]) -> None:
        if not self.is_configured():
            logger.debug("WHATSAPP_API_URL not set; skipping WhatsApp notify")
            return
        if not payload.get("phone"):
            logger.debug("No recipient phone in payload; skipping WhatsApp notify")
            return
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(self.api_url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise NotificationError(f"WhatsApp gateway request failed: {e}") from e
        if not resp.is_success:
            raise NotificationError(f"WhatsApp gateway returned {resp.status_code}: {resp.text[:200]}")
        logger.info("WhatsApp %s message sent to %s", payload.get("type", "admin"), payload["phone"])
