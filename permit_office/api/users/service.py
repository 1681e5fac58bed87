import logging
from typing import List

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.models import User, UserParkAssignment
from permit_office.auth.park_access import get_assigned_park_ids
from permit_office.auth.schemas import UserInfo
from permit_office.auth.security import hash_password
from permit_office.core.exceptions import ServiceError, not_found
from permit_office.core.models import Park

from .schemas import UserParksResponse, UserUpdate

logger = logging.getLogger(__name__)


async def list_users(db: AsyncSession) -> List[UserInfo]:
    result = await db.execute(select(User).order_by(User.username))
    return [UserInfo.model_validate(u) for u in result.scalars().all()]


async def update_user(db: AsyncSession, user_id: int, payload: UserUpdate) -> UserInfo:
    user = await db.get(User, user_id)
    if not user:
        raise not_found("User")
    data = payload.model_dump(exclude_unset=True)
    password = data.pop("password", None)
    if password:
        user.password_hash = hash_password(password)
    if data.get("role") is not None:
        data["role"] = data["role"].value
    if data.get("email") is not None:
        data["email"] = str(data["email"])
    for key, value in data.items():
        if value is None and key in ("name", "email", "role"):
            continue
        setattr(user, key, value)
    await db.commit()
    await db.refresh(user)
    return UserInfo.model_validate(user)


async def get_user_parks(db: AsyncSession, user_id: int) -> UserParksResponse:
    if not await db.get(User, user_id):
        raise not_found("User")
    park_ids = await get_assigned_park_ids(db, user_id)
    return UserParksResponse(user_id=user_id, park_ids=sorted(park_ids))


async def assign_park(db: AsyncSession, user_id: int, park_id: int) -> UserParksResponse:
    if not await db.get(User, user_id):
        raise not_found("User")
    if not await db.get(Park, park_id):
        raise not_found("Park")
    if await db.get(UserParkAssignment, (user_id, park_id)):
        raise ServiceError("Park is already assigned to this user", status.HTTP_409_CONFLICT)
    db.add(UserParkAssignment(user_id=user_id, park_id=park_id))
    await db.commit()
    logger.info("Assigned park %s to user %s", park_id, user_id)
    return await get_user_parks(db, user_id)


async def unassign_park(db: AsyncSession, user_id: int, park_id: int) -> UserParksResponse:
    assignment = await db.get(UserParkAssignment, (user_id, park_id))
    if not assignment:
        raise not_found("Park assignment")
    await db.delete(assignment)
    await db.commit()
    logger.info("Removed park %s from user %s", park_id, user_id)
    return await get_user_parks(db, user_id)
