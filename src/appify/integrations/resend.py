"""Resend e-mail client."""

from __future__ import annotations

import logging

import httpx

from appify.errors.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


class ResendClient:
    def __init__(
        self,
        api_key: str,
        sender: str,
        *,
        api_base: str = "https://api.resend.com",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self.sender = sender
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def send_email(self, to: str, subject: str, html: str) -> str:
        """Send one message and return the provider's message id."""
        if not self.configured:
            raise EmailDeliveryError("Resend API key is not configured")

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        body = {"from": self.sender, "to": [to], "subject": subject, "html": html}
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.post(f"{self._api_base}/emails", headers=headers, json=body)
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(f"Resend request failed: {exc}") from exc

        if response.status_code >= 300:
            raise EmailDeliveryError(f"Resend returned {response.status_code}: {response.text[:500]}")

        message_id = response.json().get("id", "")
        logger.info("E-mail %s sent to %s", message_id, to)
        return message_id
