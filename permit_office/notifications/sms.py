"""Outbound SMS through the Twilio Messages REST API."""

import logging
from typing import Optional

import httpx

from permit_office.core.config import settings
from permit_office.notifications.email import NotificationNotConfigured

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


async def send_sms(to: str, body: str, *, client: Optional[httpx.AsyncClient] = None) -> None:
    """Send one text message. Raises NotificationNotConfigured or httpx.HTTPError on failure."""
    sid = settings.twilio_account_sid
    token = settings.twilio_auth_token
    sender = settings.twilio_from_number
    if not (sid and token and sender):
        raise NotificationNotConfigured("Twilio credentials are not set")

    url = TWILIO_MESSAGES_URL.format(sid=sid)
    data = {"From": sender, "To": to, "Body": body}
    if client is None:
        async with httpx.AsyncClient(timeout=settings.notification_timeout_seconds) as own_client:
            response = await own_client.post(url, data=data, auth=(sid, token))
    else:
        response = await client.post(url, data=data, auth=(sid, token))
    response.raise_for_status()
    logger.info("SMS sent to %s", to)
