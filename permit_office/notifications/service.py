"""
Applicant notifications for application decisions.

Notices are plain snapshots built while the request still holds its DB session;
the Notifier runs after the response as a background task and never raises:
every delivery failure is logged and reported as False.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from permit_office.core.config import settings
from permit_office.core.enums import MessagingMethod
from permit_office.notifications import email, sms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApprovalNotice:
    recipient_email: Optional[str]
    recipient_name: str
    application_number: str
    event_title: str
    park_name: str
    invoice_amount: Optional[int]  # cents


@dataclass(frozen=True)
class DisapprovalNotice:
    recipient_email: Optional[str]
    recipient_phone: Optional[str]
    recipient_name: str
    application_number: str
    event_title: str
    park_name: str
    reason: str
    method: MessagingMethod


def format_amount(cents: Optional[int]) -> str:
    if cents is None:
        return "$0.00"
    return f"${cents / 100:,.2f}"


def approval_email_text(notice: ApprovalNotice) -> str:
    return (
        "APPLICATION APPROVED!\n\n"
        f"Dear {notice.recipient_name},\n\n"
        "We're excited to let you know that your application for a special use permit has been approved.\n\n"
        f"Event: {notice.event_title}\n"
        f"Park: {notice.park_name}\n"
        f"Invoice Amount: {format_amount(notice.invoice_amount)}\n\n"
        "You can now proceed to payment. Once completed, your official permit will be issued.\n\n"
        f"Use Your Application ID: {notice.application_number} to pay your Invoice.\n\n"
        f"Pay your invoice at: {settings.payment_portal_url}\n\n"
        "If you have any questions, just reply to this email or reach out to our team.\n"
    )


def approval_email_html(notice: ApprovalNotice) -> str:
    return (
        "<h1>APPLICATION APPROVED!</h1>"
        f"<p>Dear {notice.recipient_name},</p>"
        "<p>We're excited to let you know that your application for a special use permit has been approved.</p>"
        f"<p><strong>Event:</strong> {notice.event_title}<br>"
        f"<strong>Park:</strong> {notice.park_name}<br>"
        f"<strong>Invoice Amount:</strong> {format_amount(notice.invoice_amount)}</p>"
        f"<p>Use Your Application ID: <strong>{notice.application_number}</strong> to pay your Invoice.</p>"
        f'<p><a href="{settings.payment_portal_url}">Pay Invoice</a></p>'
    )


def disapproval_text(notice: DisapprovalNotice) -> str:
    return (
        f"Dear {notice.recipient_name},\n\n"
        f"Your permit application {notice.application_number} for \"{notice.event_title}\" "
        f"at {notice.park_name} was not approved.\n\n"
        f"Reason: {notice.reason}\n\n"
        "If you have any questions, just reply to this message or reach out to our team.\n"
    )


class Notifier:
    async def send_approval(self, notice: ApprovalNotice) -> bool:
        if not notice.recipient_email:
            logger.warning("Application %s has no email address, approval email skipped", notice.application_number)
            return False
        try:
            await email.send_email(
                notice.recipient_email,
                f"Application Approved - {notice.event_title}",
                approval_email_text(notice),
                approval_email_html(notice),
            )
            return True
        except Exception:
            logger.exception("Failed to send approval email for %s", notice.application_number)
            return False

    async def send_disapproval(self, notice: DisapprovalNotice) -> Dict[str, bool]:
        """Deliver on the requested channel(s); returns the outcome per channel."""
        body = disapproval_text(notice)
        outcome: Dict[str, bool] = {}
        if notice.method in (MessagingMethod.EMAIL, MessagingMethod.BOTH):
            try:
                await email.send_email(
                    notice.recipient_email,
                    f"Application Update - {notice.event_title}",
                    body,
                )
                outcome["email"] = True
            except Exception:
                logger.exception("Failed to email disapproval for %s", notice.application_number)
                outcome["email"] = False
        if notice.method in (MessagingMethod.SMS, MessagingMethod.BOTH):
            try:
                await sms.send_sms(notice.recipient_phone, body)
                outcome["sms"] = True
            except Exception:
                logger.exception("Failed to text disapproval for %s", notice.application_number)
                outcome["sms"] = False
        return outcome


notifier = Notifier()


def get_notifier() -> Notifier:
    return notifier
