"""
Periodic cleanup of abandoned applications.

An application that is still pending, unpaid and older than the cutoff was never
completed by the applicant; it is deleted. Each deletion commits on its own so
one bad row does not block the rest.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from permit_office.core.enums import ApplicationStatus
from permit_office.core.models import Application, Invoice
from permit_office.core.time_utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_HOURS = 24


async def purge_stale_applications(
    db: AsyncSession,
    now: Optional[datetime] = None,
    max_age_hours: int = DEFAULT_MAX_AGE_HOURS,
) -> int:
    """Delete pending, unpaid applications created before now - max_age_hours. Returns the count deleted."""
    cutoff = (now or utcnow()) - timedelta(hours=max_age_hours)
    result = await db.execute(
        select(Application.id, Application.application_number).where(
            Application.status == ApplicationStatus.PENDING.value,
            Application.is_paid.is_(False),
            Application.created_at < cutoff,
        )
    )
    stale = result.all()

    deleted = 0
    for application_id, number in stale:
        try:
            await db.execute(
                update(Invoice).where(Invoice.application_id == application_id).values(application_id=None)
            )
            await db.execute(delete(Application).where(Application.id == application_id))
            await db.commit()
            deleted += 1
            logger.info("Deleted stale application %s", number)
        except Exception:
            await db.rollback()
            logger.exception("Failed to delete stale application %s", number)

    logger.info("Stale application cleanup removed %d of %d candidate(s)", deleted, len(stale))
    return deleted


async def run_reaper(
    session_factory: async_sessionmaker,
    interval_seconds: float,
    max_age_hours: int = DEFAULT_MAX_AGE_HOURS,
) -> None:
    """Run the cleanup now and then every interval_seconds until cancelled."""
    while True:
        try:
            async with session_factory() as db:
                await purge_stale_applications(db, max_age_hours=max_age_hours)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Stale application cleanup run failed")
        await asyncio.sleep(interval_seconds)
