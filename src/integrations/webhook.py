"""HTTP delivery of extracted call data to an external webhook."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from agents.errors import WebhookDeliveryError

LOGGER = logging.getLogger(__name__)


class WebhookClient:
    """Posts JSON payloads to a webhook URL, once, without retries."""

    def __init__(self, *, timeout: float = 30, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._timeout = timeout
        self._transport = transport

    async def send(self, url: str, payload: dict[str, Any]) -> None:
        headers = {"Content-Type": "application/json"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise WebhookDeliveryError(f"Webhook request failed: {exc}") from exc

        LOGGER.info("Webhook response status: %s", response.status_code)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            LOGGER.error("Failed to send data to webhook: %s", exc)
            raise WebhookDeliveryError(f"Webhook returned {response.status_code}") from exc
