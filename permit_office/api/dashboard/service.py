from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.park_access import filter_by_access
from permit_office.auth.schemas import CurrentUser
from permit_office.core.enums import InvoiceStatus, PermitStatus
from permit_office.core.models import Invoice, Permit

from .schemas import DashboardStats


async def get_stats(db: AsyncSession, current_user: CurrentUser) -> DashboardStats:
    permits_result = await db.execute(select(Permit).where(Permit.is_template.is_(False)))
    permits = await filter_by_access(db, current_user, permits_result.scalars().all())
    invoices_result = await db.execute(select(Invoice))
    invoices = await filter_by_access(db, current_user, invoices_result.scalars().all())

    return DashboardStats(
        active_permits=sum(1 for p in permits if p.status == PermitStatus.APPROVED.value),
        pending_permits=sum(1 for p in permits if p.status == PermitStatus.PENDING.value),
        total_invoices=len(invoices),
        pending_invoices=sum(1 for i in invoices if i.status == InvoiceStatus.PENDING.value),
        revenue=sum(i.amount for i in invoices if i.status == InvoiceStatus.PAID.value),
    )
