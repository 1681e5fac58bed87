import logging
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.park_access import ensure_access, filter_by_access
from permit_office.auth.schemas import CurrentUser
from permit_office.core.config import settings
from permit_office.core.enums import InvoiceStatus, PaymentOutcome
from permit_office.core.exceptions import ServiceError, not_found
from permit_office.core.identifiers import INVOICE_KIND, commit_with_identifier_retry, generate_identifier, year_prefix
from permit_office.core.models import Application, Invoice, Park, Permit
from permit_office.core.time_utils import today, utcnow

from .schemas import InvoiceCreate, InvoiceResponse, InvoiceUpdate, PaymentWebhookRequest

logger = logging.getLogger(__name__)

RECENT_LIMIT = 10


async def _get_invoice(db: AsyncSession, current_user: CurrentUser, invoice_id: int) -> Invoice:
    invoice = await db.get(Invoice, invoice_id)
    if not invoice:
        raise not_found("Invoice")
    await ensure_access(db, current_user, invoice.park_id)
    return invoice


async def _mark_paid(
    db: AsyncSession,
    invoice: Invoice,
    payment_date: Optional[datetime] = None,
    transaction_id: Optional[str] = None,
) -> None:
    """Mark the invoice paid and flag its application as paid. Caller commits."""
    invoice.status = InvoiceStatus.PAID.value
    invoice.payment_date = payment_date or utcnow()
    if transaction_id:
        invoice.transaction_id = transaction_id
    if invoice.application_id is not None:
        application = await db.get(Application, invoice.application_id)
        if application:
            application.is_paid = True


async def list_invoices(db: AsyncSession, current_user: CurrentUser) -> List[InvoiceResponse]:
    result = await db.execute(select(Invoice).order_by(Invoice.created_at.desc(), Invoice.id.desc()))
    invoices = await filter_by_access(db, current_user, result.scalars().all())
    return [InvoiceResponse.model_validate(i) for i in invoices]


async def list_recent_invoices(db: AsyncSession, current_user: CurrentUser, limit: int = RECENT_LIMIT) -> List[InvoiceResponse]:
    return (await list_invoices(db, current_user))[:limit]


async def get_invoice(db: AsyncSession, current_user: CurrentUser, invoice_id: int) -> InvoiceResponse:
    return InvoiceResponse.model_validate(await _get_invoice(db, current_user, invoice_id))


async def _resolve_park_id(db: AsyncSession, payload: InvoiceCreate) -> int:
    if payload.application_id is not None:
        application = await db.get(Application, payload.application_id)
        if not application:
            raise not_found("Application")
        return application.park_id
    if payload.permit_id is not None:
        permit = await db.get(Permit, payload.permit_id)
        if not permit:
            raise not_found("Permit")
        return permit.park_id
    if payload.park_id is None:
        raise ServiceError("An application, permit or park is required", status.HTTP_400_BAD_REQUEST)
    if not await db.get(Park, payload.park_id):
        raise not_found("Park")
    return payload.park_id


async def create_invoice(db: AsyncSession, current_user: CurrentUser, payload: InvoiceCreate) -> InvoiceResponse:
    park_id = await _resolve_park_id(db, payload)
    await ensure_access(db, current_user, park_id)

    issue_date = payload.issue_date or today()
    invoice = Invoice(
        amount=payload.amount,
        status=payload.status.value,
        issue_date=issue_date,
        due_date=payload.due_date or issue_date + timedelta(days=settings.invoice_due_days),
        park_id=park_id,
        application_id=payload.application_id,
        permit_id=payload.permit_id,
        created_by=current_user.id,
    )

    async def stage() -> None:
        if payload.status == InvoiceStatus.PAID:
            await _mark_paid(db, invoice)
        invoice.invoice_number = await generate_identifier(db, Invoice.invoice_number, year_prefix(INVOICE_KIND))
        db.add(invoice)

    await commit_with_identifier_retry(db, stage)
    await db.refresh(invoice)
    logger.info("Created invoice %s for park %s", invoice.invoice_number, park_id)
    return InvoiceResponse.model_validate(invoice)


async def update_invoice(
    db: AsyncSession, current_user: CurrentUser, invoice_id: int, payload: InvoiceUpdate
) -> InvoiceResponse:
    invoice = await _get_invoice(db, current_user, invoice_id)
    data = payload.model_dump(exclude_unset=True)
    new_status = data.pop("status", None)
    if invoice.status == InvoiceStatus.PAID.value and new_status not in (None, InvoiceStatus.PAID):
        raise ServiceError("A paid invoice cannot be moved back to unpaid", status.HTTP_409_CONFLICT)
    for key, value in data.items():
        setattr(invoice, key, value)
    if new_status == InvoiceStatus.PAID:
        await _mark_paid(db, invoice, payload.payment_date, payload.transaction_id)
    elif new_status is not None:
        invoice.status = new_status.value
    await db.commit()
    await db.refresh(invoice)
    return InvoiceResponse.model_validate(invoice)


async def delete_invoice(db: AsyncSession, current_user: CurrentUser, invoice_id: int) -> None:
    invoice = await _get_invoice(db, current_user, invoice_id)
    await db.delete(invoice)
    await db.commit()
    logger.info("Deleted invoice %s", invoice.invoice_number)


async def record_payment(db: AsyncSession, invoice_number: str, payload: PaymentWebhookRequest) -> InvoiceResponse:
    """
    Apply a payment result from the external payment site.

    paid settles the invoice and its application; failed and pending leave an unpaid
    invoice pending and are ignored once the invoice is paid.
    """
    result = await db.execute(select(Invoice).where(Invoice.invoice_number == invoice_number))
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise not_found("Invoice")

    if payload.status == PaymentOutcome.PAID:
        await _mark_paid(db, invoice, payload.payment_date, payload.transaction_id)
        logger.info("Invoice %s paid (transaction %s)", invoice_number, payload.transaction_id)
    elif invoice.status == InvoiceStatus.PAID.value:
        logger.warning(
            "Ignoring %s payment result for already paid invoice %s (transaction %s)",
            payload.status.value,
            invoice_number,
            payload.transaction_id,
        )
        return InvoiceResponse.model_validate(invoice)
    else:
        invoice.status = InvoiceStatus.PENDING.value
        if payload.transaction_id:
            invoice.transaction_id = payload.transaction_id
        if payload.status == PaymentOutcome.FAILED:
            logger.warning("Payment failed for invoice %s (transaction %s)", invoice_number, payload.transaction_id)

    await db.commit()
    await db.refresh(invoice)
    return InvoiceResponse.model_validate(invoice)
