import logging
from datetime import datetime, timezone

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.models import User, UserParkAssignment
from permit_office.auth.schemas import LoginRequest, LoginResponse, RegisterRequest, UserInfo
from permit_office.auth.security import create_access_token, hash_password, token_claims, verify_password
from permit_office.core.exceptions import ServiceError
from permit_office.core.models import Park

logger = logging.getLogger(__name__)


async def get_user_by_username(db: AsyncSession, username: str):
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, payload: RegisterRequest) -> UserInfo:
    """Create a back-office user and its park assignments. Caller must be an admin."""
    username = payload.username.strip()
    if await get_user_by_username(db, username):
        raise ServiceError("Username already exists", status.HTTP_400_BAD_REQUEST)

    park_ids = sorted(set(payload.assigned_park_ids))
    if park_ids:
        result = await db.execute(select(Park.id).where(Park.id.in_(park_ids)))
        found = set(result.scalars().all())
        missing = [pid for pid in park_ids if pid not in found]
        if missing:
            raise ServiceError(f"Unknown park ids: {missing}", status.HTTP_400_BAD_REQUEST)

    try:
        user = User(
            username=username,
            password_hash=hash_password(payload.password),
            name=payload.name.strip(),
            email=str(payload.email),
            phone=payload.phone,
            role=payload.role.value,
        )
        db.add(user)
        await db.flush()
        for park_id in park_ids:
            db.add(UserParkAssignment(user_id=user.id, park_id=park_id))
        await db.commit()
        await db.refresh(user)
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Username already exists", status.HTTP_409_CONFLICT)

    logger.info("Created user %s (role=%s, parks=%s)", user.username, user.role, park_ids)
    return UserInfo.model_validate(user)


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    user = await get_user_by_username(db, payload.username.strip())
    if not user or not verify_password(payload.password, user.password_hash):
        raise ServiceError("Invalid username or password", status.HTTP_401_UNAUTHORIZED)

    issued_at = datetime.now(timezone.utc)
    access_token = create_access_token(subject=token_claims(user.id, user.role, issued_at))

    return LoginResponse(
        access_token=access_token,
        user=UserInfo.model_validate(user),
        issued_at=issued_at,
    )
