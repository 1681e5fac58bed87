"""
Park-scoped access control shared by every park-scoped resource.

has_access decides for one park id, filter_by_access narrows a collection.
Admins bypass both; everyone else is limited to the parks in user_park_assignments,
read fresh on every call.
"""

from typing import Callable, List, Optional, Sequence, Set, TypeVar, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.models import UserParkAssignment
from permit_office.auth.schemas import CurrentUser
from permit_office.core.exceptions import access_denied

T = TypeVar("T")

ParkField = Union[str, Callable[[T], Optional[int]]]


async def get_assigned_park_ids(db: AsyncSession, user_id: int) -> Set[int]:
    result = await db.execute(
        select(UserParkAssignment.park_id).where(UserParkAssignment.user_id == user_id)
    )
    return set(result.scalars().all())


async def has_access(db: AsyncSession, user: CurrentUser, park_id: Optional[int]) -> bool:
    if user.is_admin:
        return True
    if park_id is None:
        return False
    return park_id in await get_assigned_park_ids(db, user.id)


def _park_id_of(record, park_field: ParkField) -> Optional[int]:
    if callable(park_field):
        return park_field(record)
    if isinstance(record, dict):
        return record.get(park_field)
    return getattr(record, park_field, None)


def restrict_to_parks(records: Sequence[T], park_ids: Set[int], park_field: ParkField = "park_id") -> List[T]:
    return [r for r in records if _park_id_of(r, park_field) in park_ids]


async def filter_by_access(
    db: AsyncSession,
    user: CurrentUser,
    records: Sequence[T],
    park_field: ParkField = "park_id",
) -> List[T]:
    """Records the user may see. Non-admins without assignments get an empty list."""
    if user.is_admin:
        return list(records)
    park_ids = await get_assigned_park_ids(db, user.id)
    if not park_ids:
        return []
    return restrict_to_parks(records, park_ids, park_field)


async def ensure_access(
    db: AsyncSession,
    user: CurrentUser,
    park_id: Optional[int],
    message: str = "Access denied",
) -> None:
    if not await has_access(db, user, park_id):
        raise access_denied(message)
