from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.dependencies import get_current_user
from permit_office.auth.park_access import has_access
from permit_office.auth.rbac import require_admin, sees_all_parks
from permit_office.auth.schemas import CurrentUser
from permit_office.core.exceptions import ServiceError
from permit_office.db.session import get_db

from .schemas import ParkCreate, ParkResponse, ParkStatusResponse, ParkUpdate
from . import service

router = APIRouter(prefix="/api/parks", tags=["parks"])


@router.get("", response_model=List[ParkResponse])
async def list_parks(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[ParkResponse]:
    return await service.list_parks(db, current_user)


@router.get("/status", response_model=List[ParkStatusResponse])
async def list_park_status(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[ParkStatusResponse]:
    """Compact status overview for the dashboard."""
    return await service.list_park_status(db, current_user)


@router.get("/{park_id}", response_model=ParkResponse)
async def get_park(
    park_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ParkResponse:
    park = await service.get_park(db, park_id)
    if not park:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Park not found")
    if not sees_all_parks(current_user) and not await has_access(db, current_user, park.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return ParkResponse.model_validate(park)


@router.post("", response_model=ParkResponse, status_code=status.HTTP_201_CREATED)
async def create_park(
    payload: ParkCreate,
    db: AsyncSession = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
) -> ParkResponse:
    return await service.create_park(db, payload)


@router.patch("/{park_id}", response_model=ParkResponse)
async def update_park(
    park_id: int,
    payload: ParkUpdate,
    db: AsyncSession = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
) -> ParkResponse:
    try:
        return await service.update_park(db, park_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{park_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_park(
    park_id: int,
    db: AsyncSession = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
) -> Response:
    try:
        await service.delete_park(db, park_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
