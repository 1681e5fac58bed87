"""
Sequential human-readable identifiers: <KIND>-<YEAR>-NNNN.

The sequence is scoped per prefix (kind + calendar year): the next value is the
largest trailing number among existing codes with that prefix, plus one, padded
to 4 digits (a fifth digit widens the field). Identifier columns are UNIQUE; a
concurrent insert that computed the same code fails on commit and the caller
retries with a freshly scanned sequence (commit_with_identifier_retry).
"""

import logging
import re
from datetime import datetime
from typing import Awaitable, Callable, Iterable, Optional, Sequence

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.core.exceptions import ServiceError

logger = logging.getLogger(__name__)

PERMIT_KIND = "SUP"
TEMPLATE_KIND = "TEMPLATE"
INVOICE_KIND = "INV"
APPLICATION_KIND = "APP"

SEQUENCE_WIDTH = 4
MAX_IDENTIFIER_ATTEMPTS = 5

_TRAILING_DIGITS = re.compile(r"(\d+)$")


def year_prefix(kind: str, year: Optional[int] = None) -> str:
    """Prefix for a kind in a calendar year, e.g. year_prefix("INV", 2025) -> "INV-2025-"."""
    if year is None:
        year = datetime.now().year
    return f"{kind}-{year}-"


def next_code(prefix: str, existing: Iterable[Optional[str]]) -> str:
    """
    Next code for prefix given the codes already issued.

    Codes outside the prefix or without a trailing number are ignored.
    """
    highest = 0
    for code in existing:
        if not code or not code.startswith(prefix):
            continue
        match = _TRAILING_DIGITS.search(code[len(prefix):])
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}{str(highest + 1).zfill(SEQUENCE_WIDTH)}"


async def generate_identifier(db: AsyncSession, column, prefix: str) -> str:
    """Scan column for codes starting with prefix and return the next one."""
    result = await db.execute(select(column).where(column.like(f"{prefix}%")))
    return next_code(prefix, result.scalars().all())


async def commit_with_identifier_retry(
    db: AsyncSession,
    stage: Callable[[], Awaitable[None]],
    *,
    refresh: Sequence[object] = (),
    max_attempts: int = MAX_IDENTIFIER_ATTEMPTS,
) -> None:
    """
    Run stage() (which allocates identifiers and adds/mutates rows) and commit.

    On IntegrityError the transaction is rolled back, the objects in refresh are
    reloaded, and stage() runs again so it picks up the sequence the competing
    insert has just taken.
    """
    for attempt in range(1, max_attempts + 1):
        await stage()
        try:
            await db.commit()
            return
        except IntegrityError:
            await db.rollback()
            logger.warning("Identifier collision on commit (attempt %d/%d)", attempt, max_attempts)
            for obj in refresh:
                await db.refresh(obj)
    raise ServiceError(
        "Could not allocate a unique identifier, please retry",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
