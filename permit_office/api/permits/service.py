import logging
from typing import List

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.park_access import ensure_access, filter_by_access
from permit_office.auth.schemas import CurrentUser
from permit_office.core.enums import PermitStatus
from permit_office.core.exceptions import ServiceError, not_found
from permit_office.core.identifiers import PERMIT_KIND, commit_with_identifier_retry, generate_identifier, year_prefix
from permit_office.core.models import Park, Permit
from permit_office.core.time_utils import today

from .schemas import PermitCreate, PermitResponse, PermitUpdate

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5


async def _get_permit(db: AsyncSession, permit_id: int) -> Permit:
    permit = await db.get(Permit, permit_id)
    if not permit or permit.is_template:
        raise not_found("Permit")
    return permit


async def list_permits(db: AsyncSession, current_user: CurrentUser) -> List[PermitResponse]:
    result = await db.execute(
        select(Permit).where(Permit.is_template.is_(False)).order_by(Permit.created_at.desc(), Permit.id.desc())
    )
    permits = await filter_by_access(db, current_user, result.scalars().all())
    return [PermitResponse.model_validate(p) for p in permits]


async def list_recent_permits(db: AsyncSession, current_user: CurrentUser, limit: int = RECENT_LIMIT) -> List[PermitResponse]:
    return (await list_permits(db, current_user))[:limit]


async def get_permit(db: AsyncSession, current_user: CurrentUser, permit_id: int) -> PermitResponse:
    permit = await _get_permit(db, permit_id)
    await ensure_access(db, current_user, permit.park_id, "Access denied to this permit")
    return PermitResponse.model_validate(permit)


async def create_permit(db: AsyncSession, current_user: CurrentUser, payload: PermitCreate) -> PermitResponse:
    if not await db.get(Park, payload.park_id):
        raise not_found("Park")
    await ensure_access(db, current_user, payload.park_id, "Access denied to this park")
    if payload.end_date < payload.start_date:
        raise ServiceError("End date must not be before start date", status.HTTP_400_BAD_REQUEST)

    data = payload.model_dump()
    data["status"] = payload.status.value
    data["permittee_email"] = str(payload.permittee_email)
    permit = Permit(**data, created_by=current_user.id, updated_by=current_user.id)
    if permit.status == PermitStatus.APPROVED.value:
        permit.issue_date = today()

    async def stage() -> None:
        permit.permit_number = await generate_identifier(db, Permit.permit_number, year_prefix(PERMIT_KIND))
        db.add(permit)

    await commit_with_identifier_retry(db, stage)
    await db.refresh(permit)
    logger.info("Created permit %s for park %s", permit.permit_number, permit.park_id)
    return PermitResponse.model_validate(permit)


async def update_permit(
    db: AsyncSession, current_user: CurrentUser, permit_id: int, payload: PermitUpdate
) -> PermitResponse:
    permit = await _get_permit(db, permit_id)
    await ensure_access(db, current_user, permit.park_id, "Access denied to this permit")

    data = payload.model_dump(exclude_unset=True)
    new_status = data.pop("status", None)
    if data.get("permittee_email") is not None:
        data["permittee_email"] = str(data["permittee_email"])
    for key, value in data.items():
        setattr(permit, key, value)
    if new_status is not None:
        if new_status == PermitStatus.APPROVED and permit.status != PermitStatus.APPROVED.value:
            permit.issue_date = today()
        permit.status = new_status.value
    if permit.end_date < permit.start_date:
        raise ServiceError("End date must not be before start date", status.HTTP_400_BAD_REQUEST)
    permit.updated_by = current_user.id

    await db.commit()
    await db.refresh(permit)
    return PermitResponse.model_validate(permit)


async def delete_permit(db: AsyncSession, current_user: CurrentUser, permit_id: int) -> None:
    permit = await _get_permit(db, permit_id)
    await ensure_access(db, current_user, permit.park_id, "Access denied to this permit")
    await db.delete(permit)
    await db.commit()
    logger.info("Deleted permit %s", permit.permit_number)
