"""Outbound e-mail through the SendGrid v3 REST API."""

import logging
from typing import Optional

import httpx

from permit_office.core.config import settings

logger = logging.getLogger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class NotificationNotConfigured(Exception):
    """The channel has no credentials configured."""


async def send_email(
    to: str,
    subject: str,
    text: str,
    html: Optional[str] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> None:
    """Send one message. Raises NotificationNotConfigured or httpx.HTTPError on failure."""
    if not settings.sendgrid_api_key:
        raise NotificationNotConfigured("SENDGRID_API_KEY is not set")

    content = [{"type": "text/plain", "value": text}]
    if html:
        content.append({"type": "text/html", "value": html})
    payload = {
        "personalizations": [{"to": [{"email": to}]}],
        "from": {"email": settings.email_from},
        "subject": subject,
        "content": content,
    }
    headers = {"Authorization": f"Bearer {settings.sendgrid_api_key}"}

    if client is None:
        async with httpx.AsyncClient(timeout=settings.notification_timeout_seconds) as own_client:
            response = await own_client.post(SENDGRID_SEND_URL, json=payload, headers=headers)
    else:
        response = await client.post(SENDGRID_SEND_URL, json=payload, headers=headers)
    response.raise_for_status()
    logger.info("Email sent to %s: %s", to, subject)
