"""JSON-over-HTTP mail API sender."""

from __future__ import annotations

import logging

import httpx

from devcamper.adapters.email.base import EmailDeliveryError, EmailMessage, EmailSender
from devcamper.core.logging_safety import safe_email_domain

logger = logging.getLogger(__name__)


class HttpEmailSender(EmailSender):
    """Posts messages to a transactional mail API.

    Payload::

        {"from": {"email": ..., "name": ...}, "to": [{"email": ...}],
         "subject": ..., "text": ...}
    """

    def __init__(
        self,
        *,
        api_url: str | None,
        api_key: str | None,
        from_address: str,
        from_name: str,
        timeout_s: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = (api_url or "").strip()
        self._api_key = (api_key or "").strip()
        self._from_address = from_address
        self._from_name = from_name
        self._timeout_s = timeout_s
        self._transport = transport

    async def send(self, message: EmailMessage) -> None:
        if not self._api_url:
            raise EmailDeliveryError("Email API URL is not configured.")

        payload = {
            "from": {"email": self._from_address, "name": self._from_name},
            "to": [{"email": message.to}],
            "subject": message.subject,
            "text": message.body,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

        try:
            async with httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport) as client:
                resp = await client.post(self._api_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise EmailDeliveryError("Email provider is unreachable.") from exc

        if resp.status_code >= 400:
            logger.warning(
                "email.rejected status=%s recipient_domain=%s",
                resp.status_code,
                safe_email_domain(message.to),
            )
            raise EmailDeliveryError(f"Email provider rejected the message: {resp.status_code}")

        logger.info("email.sent recipient_domain=%s", safe_email_domain(message.to))


__all__ = ["HttpEmailSender"]
