from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.rbac import require_admin
from permit_office.auth.schemas import CurrentUser, UserInfo
from permit_office.core.exceptions import ServiceError
from permit_office.db.session import get_db

from .schemas import UserParksResponse, UserUpdate
from . import service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=List[UserInfo])
async def list_users(
    db: AsyncSession = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
) -> List[UserInfo]:
    return await service.list_users(db)


@router.patch("/{user_id}", response_model=UserInfo)
async def update_user(
    user_id: int,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
) -> UserInfo:
    try:
        return await service.update_user(db, user_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{user_id}/parks", response_model=UserParksResponse)
async def get_user_parks(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
) -> UserParksResponse:
    try:
        return await service.get_user_parks(db, user_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/{user_id}/parks/{park_id}",
    response_model=UserParksResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign_park(
    user_id: int,
    park_id: int,
    db: AsyncSession = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
) -> UserParksResponse:
    """Grant a user access to a park's records."""
    try:
        return await service.assign_park(db, user_id, park_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{user_id}/parks/{park_id}", response_model=UserParksResponse)
async def unassign_park(
    user_id: int,
    park_id: int,
    db: AsyncSession = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
) -> UserParksResponse:
    try:
        return await service.unassign_park(db, user_id, park_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
