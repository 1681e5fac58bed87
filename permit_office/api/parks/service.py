from typing import List, Optional

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.park_access import filter_by_access
from permit_office.auth.rbac import sees_all_parks
from permit_office.auth.schemas import CurrentUser
from permit_office.core.exceptions import ServiceError, not_found
from permit_office.core.models import Park, Permit

from .schemas import ParkCreate, ParkResponse, ParkStatusResponse, ParkUpdate


async def get_park(db: AsyncSession, park_id: int) -> Optional[Park]:
    return await db.get(Park, park_id)


async def list_parks(db: AsyncSession, current_user: CurrentUser) -> List[ParkResponse]:
    """Admins and managers see the full directory; staff see their assigned parks."""
    result = await db.execute(select(Park).order_by(Park.name))
    parks = list(result.scalars().all())
    if not sees_all_parks(current_user):
        parks = await filter_by_access(db, current_user, parks, park_field="id")
    return [ParkResponse.model_validate(p) for p in parks]


async def list_park_status(db: AsyncSession, current_user: CurrentUser) -> List[ParkStatusResponse]:
    parks = await list_parks(db, current_user)
    return [
        ParkStatusResponse(id=p.id, name=p.name, status=p.status or "active", location=p.location)
        for p in parks
    ]


async def create_park(db: AsyncSession, payload: ParkCreate) -> ParkResponse:
    park = Park(
        name=payload.name.strip(),
        location=payload.location.strip(),
        description=payload.description,
        status=payload.status or "active",
        locations=[loc.strip() for loc in payload.locations if loc and loc.strip()],
        waiver=payload.waiver,
    )
    db.add(park)
    await db.commit()
    await db.refresh(park)
    return ParkResponse.model_validate(park)


async def update_park(db: AsyncSession, park_id: int, payload: ParkUpdate) -> ParkResponse:
    park = await get_park(db, park_id)
    if not park:
        raise not_found("Park")
    data = payload.model_dump(exclude_unset=True)
    if data.get("locations") is not None:
        data["locations"] = [loc.strip() for loc in data["locations"] if loc and loc.strip()]
    for key, value in data.items():
        setattr(park, key, value)
    await db.commit()
    await db.refresh(park)
    return ParkResponse.model_validate(park)


async def delete_park(db: AsyncSession, park_id: int) -> None:
    """Delete a park. Rejected while the park still owns permits."""
    park = await get_park(db, park_id)
    if not park:
        raise not_found("Park")
    permit_count = (
        await db.execute(select(func.count(Permit.id)).where(Permit.park_id == park_id))
    ).scalar() or 0
    if permit_count:
        raise ServiceError("Cannot delete park with active permits", status.HTTP_409_CONFLICT)
    try:
        await db.delete(park)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Park is still referenced by applications or invoices", status.HTTP_409_CONFLICT)
