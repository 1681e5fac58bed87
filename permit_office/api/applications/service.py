import logging
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Tuple

from fastapi import status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.park_access import ensure_access, filter_by_access, get_assigned_park_ids, restrict_to_parks
from permit_office.auth.schemas import CurrentUser
from permit_office.core.config import settings
from permit_office.core.enums import ApplicationStatus, InvoiceStatus, MessagingMethod
from permit_office.core.exceptions import ServiceError, not_found
from permit_office.core.identifiers import (
    APPLICATION_KIND,
    INVOICE_KIND,
    commit_with_identifier_retry,
    generate_identifier,
    year_prefix,
)
from permit_office.core.models import Application, Invoice, Park, Permit
from permit_office.core.time_utils import today
from permit_office.notifications.service import ApprovalNotice, DisapprovalNotice

from .schemas import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationUpdate,
    ApprovedApplicationResponse,
    DisapproveRequest,
)

logger = logging.getLogger(__name__)

NOTE_TIMESTAMP_FORMAT = "%m/%d/%Y, %I:%M:%S %p"
NOTE_SEPARATOR = "\n\n"


def fee_to_cents(fee) -> int:
    """Decimal dollars to integer cents, rounding half up."""
    return int((Decimal(str(fee)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_note(text: str, username: str, now: Optional[datetime] = None) -> str:
    if now is None:
        now = datetime.now().astimezone()
    return f"{now.strftime(NOTE_TIMESTAMP_FORMAT)} by {username}: {text}"


def append_note(existing: Optional[str], entry: str) -> str:
    if existing:
        return f"{existing}{NOTE_SEPARATOR}{entry}"
    return entry


def applicant_name(application: Application) -> str:
    name = " ".join(p for p in (application.first_name, application.last_name) if p)
    return name or application.organization_name or "Applicant"


async def _get_application(db: AsyncSession, current_user: CurrentUser, application_id: int) -> Application:
    """Load an application the user may act on: 404 before 403."""
    application = await db.get(Application, application_id)
    if not application:
        raise not_found("Application")
    await ensure_access(db, current_user, application.park_id)
    return application


async def _park_name(db: AsyncSession, park_id: int) -> str:
    park = await db.get(Park, park_id)
    return park.name if park else "Unknown Park"


async def list_applications(
    db: AsyncSession, current_user: CurrentUser, status_filter: Optional[ApplicationStatus] = None
) -> List[ApplicationResponse]:
    stmt = select(Application).order_by(Application.created_at.desc(), Application.id.desc())
    if status_filter is not None:
        stmt = stmt.where(Application.status == status_filter.value)
    result = await db.execute(stmt)
    applications = await filter_by_access(db, current_user, result.scalars().all())
    return [ApplicationResponse.model_validate(a) for a in applications]


async def list_approved_with_invoices(db: AsyncSession, current_user: CurrentUser) -> List[ApprovedApplicationResponse]:
    """
    Approved applications with park name and latest invoice.

    Users without park assignments see nothing, unless
    DASHBOARD_UNASSIGNED_FALLBACK restores the old behaviour of showing everything.
    """
    result = await db.execute(
        select(Application)
        .where(Application.status == ApplicationStatus.APPROVED.value)
        .order_by(Application.created_at.desc(), Application.id.desc())
    )
    applications = list(result.scalars().all())
    if not current_user.is_admin:
        park_ids = await get_assigned_park_ids(db, current_user.id)
        if park_ids:
            applications = restrict_to_parks(applications, park_ids)
        elif not settings.dashboard_unassigned_fallback:
            applications = []
    if not applications:
        return []

    app_ids = [a.id for a in applications]
    invoices_result = await db.execute(
        select(Invoice).where(Invoice.application_id.in_(app_ids)).order_by(Invoice.id)
    )
    latest_invoice: Dict[int, Invoice] = {}
    for invoice in invoices_result.scalars().all():
        latest_invoice[invoice.application_id] = invoice

    parks_result = await db.execute(select(Park.id, Park.name).where(Park.id.in_({a.park_id for a in applications})))
    park_names = {row.id: row.name for row in parks_result.all()}

    rows: List[ApprovedApplicationResponse] = []
    for application in applications:
        invoice = latest_invoice.get(application.id)
        rows.append(
            ApprovedApplicationResponse(
                **ApplicationResponse.model_validate(application).model_dump(),
                park_name=park_names.get(application.park_id),
                invoice_number=invoice.invoice_number if invoice else None,
                invoice_status=invoice.status if invoice else None,
                invoice_amount=invoice.amount if invoice else None,
            )
        )
    return rows


async def get_application(db: AsyncSession, current_user: CurrentUser, application_id: int) -> ApplicationResponse:
    application = await _get_application(db, current_user, application_id)
    return ApplicationResponse.model_validate(application)


async def create_application(db: AsyncSession, current_user: CurrentUser, payload: ApplicationCreate) -> ApplicationResponse:
    if not await db.get(Park, payload.park_id):
        raise not_found("Park")
    await ensure_access(db, current_user, payload.park_id, "Access denied to this park")
    if payload.permit_type_id is not None:
        permit = await db.get(Permit, payload.permit_type_id)
        if not permit or permit.park_id != payload.park_id:
            raise ServiceError("Permit type does not belong to this park", status.HTTP_400_BAD_REQUEST)

    data = payload.model_dump()
    if payload.email is not None:
        data["email"] = str(payload.email)
    application = Application(
        **data,
        status=ApplicationStatus.PENDING.value,
        is_paid=False,
    )

    async def stage() -> None:
        application.application_number = await generate_identifier(
            db, Application.application_number, year_prefix(APPLICATION_KIND)
        )
        db.add(application)

    await commit_with_identifier_retry(db, stage)
    await db.refresh(application)
    logger.info("Created application %s for park %s", application.application_number, application.park_id)
    return ApplicationResponse.model_validate(application)


async def update_application(
    db: AsyncSession, current_user: CurrentUser, application_id: int, payload: ApplicationUpdate
) -> ApplicationResponse:
    application = await _get_application(db, current_user, application_id)
    data = payload.model_dump(exclude_unset=True)
    note = data.pop("notes", None)
    if data.get("email") is not None:
        data["email"] = str(data["email"])
    for key, value in data.items():
        setattr(application, key, value)
    if note:
        application.notes = append_note(application.notes, format_note(note, current_user.username))
    await db.commit()
    await db.refresh(application)
    return ApplicationResponse.model_validate(application)


async def approve_application(
    db: AsyncSession, current_user: CurrentUser, application_id: int
) -> Tuple[ApplicationResponse, ApprovalNotice]:
    """
    Approve a pending application and raise its permit-fee invoice in the same commit.

    Returns the notice for the approval email; the caller sends it after the response.
    """
    application = await _get_application(db, current_user, application_id)
    if application.status != ApplicationStatus.PENDING.value:
        raise ServiceError(
            f"Only pending applications can be approved (current status: {application.status})",
            status.HTTP_400_BAD_REQUEST,
        )

    invoice: Optional[Invoice] = None

    async def stage() -> None:
        nonlocal invoice
        if application.status != ApplicationStatus.PENDING.value:
            raise ServiceError("Application was modified concurrently", status.HTTP_409_CONFLICT)
        application.status = ApplicationStatus.APPROVED.value
        if application.permit_fee is None:
            return
        issue_date = today()
        invoice = Invoice(
            invoice_number=await generate_identifier(db, Invoice.invoice_number, year_prefix(INVOICE_KIND)),
            amount=fee_to_cents(application.permit_fee),
            status=InvoiceStatus.PENDING.value,
            issue_date=issue_date,
            due_date=issue_date + timedelta(days=settings.invoice_due_days),
            park_id=application.park_id,
            application_id=application.id,
            permit_id=application.permit_type_id,
            created_by=current_user.id,
        )
        db.add(invoice)

    await commit_with_identifier_retry(db, stage, refresh=[application])
    await db.refresh(application)

    if invoice is not None:
        logger.info(
            "Approved application %s, invoice %s for %d cents",
            application.application_number,
            invoice.invoice_number,
            invoice.amount,
        )
    else:
        logger.info("Approved application %s (no permit fee, no invoice)", application.application_number)

    notice = ApprovalNotice(
        recipient_email=application.email,
        recipient_name=applicant_name(application),
        application_number=application.application_number,
        event_title=application.event_title or "Your Event",
        park_name=await _park_name(db, application.park_id),
        invoice_amount=invoice.amount if invoice is not None else None,
    )
    return ApplicationResponse.model_validate(application), notice


async def disapprove_application(
    db: AsyncSession, current_user: CurrentUser, application_id: int, payload: DisapproveRequest
) -> Tuple[ApplicationResponse, DisapprovalNotice]:
    application = await _get_application(db, current_user, application_id)

    wants_email = payload.method in (MessagingMethod.EMAIL, MessagingMethod.BOTH)
    wants_sms = payload.method in (MessagingMethod.SMS, MessagingMethod.BOTH)
    if wants_email and not application.email:
        raise ServiceError("Application has no email address for the selected method", status.HTTP_400_BAD_REQUEST)
    if wants_sms and not application.phone:
        raise ServiceError("Application has no phone number for the selected method", status.HTTP_400_BAD_REQUEST)
    if application.status != ApplicationStatus.PENDING.value:
        raise ServiceError(
            f"Only pending applications can be disapproved (current status: {application.status})",
            status.HTTP_400_BAD_REQUEST,
        )

    application.status = ApplicationStatus.DISAPPROVED.value
    application.notes = append_note(
        application.notes,
        format_note(f"Disapproved: {payload.reason}", current_user.username),
    )
    await db.commit()
    await db.refresh(application)
    logger.info("Disapproved application %s via %s", application.application_number, payload.method.value)

    notice = DisapprovalNotice(
        recipient_email=application.email,
        recipient_phone=application.phone,
        recipient_name=applicant_name(application),
        application_number=application.application_number,
        event_title=application.event_title or "Your Event",
        park_name=await _park_name(db, application.park_id),
        reason=payload.reason,
        method=payload.method,
    )
    return ApplicationResponse.model_validate(application), notice


async def delete_application(db: AsyncSession, current_user: CurrentUser, application_id: int) -> None:
    """Delete an application. A paid application still pending review cannot be deleted."""
    application = await _get_application(db, current_user, application_id)
    if application.is_paid and application.status == ApplicationStatus.PENDING.value:
        raise ServiceError(
            "Cannot delete a paid application that is still pending",
            status.HTTP_409_CONFLICT,
        )
    await db.execute(
        update(Invoice).where(Invoice.application_id == application.id).values(application_id=None)
    )
    await db.delete(application)
    await db.commit()
    logger.info("Deleted application %s", application.application_number)
