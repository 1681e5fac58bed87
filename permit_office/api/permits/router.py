from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.dependencies import get_current_user
from permit_office.auth.schemas import CurrentUser
from permit_office.core.exceptions import ServiceError
from permit_office.db.session import get_db

from .schemas import PermitCreate, PermitResponse, PermitUpdate
from . import service

router = APIRouter(prefix="/api/permits", tags=["permits"])


@router.get("", response_model=List[PermitResponse])
async def list_permits(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[PermitResponse]:
    """List permits in the parks the current user can access, newest first."""
    return await service.list_permits(db, current_user)


@router.get("/recent", response_model=List[PermitResponse])
async def list_recent_permits(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[PermitResponse]:
    return await service.list_recent_permits(db, current_user)


@router.get("/{permit_id}", response_model=PermitResponse)
async def get_permit(
    permit_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PermitResponse:
    try:
        return await service.get_permit(db, current_user, permit_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("", response_model=PermitResponse, status_code=status.HTTP_201_CREATED)
async def create_permit(
    payload: PermitCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PermitResponse:
    """Issue a new permit number (SUP-<year>-NNNN) for a park the user can access."""
    try:
        return await service.create_permit(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{permit_id}", response_model=PermitResponse)
async def update_permit(
    permit_id: int,
    payload: PermitUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PermitResponse:
    try:
        return await service.update_permit(db, current_user, permit_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{permit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_permit(
    permit_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        await service.delete_permit(db, current_user, permit_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
