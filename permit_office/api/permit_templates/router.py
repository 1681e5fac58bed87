from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.api.permits.schemas import PermitResponse
from permit_office.auth.dependencies import get_current_user
from permit_office.auth.schemas import CurrentUser
from permit_office.core.exceptions import ServiceError
from permit_office.db.session import get_db

from .schemas import PermitTemplateForm
from . import service

router = APIRouter(prefix="/api/permit-templates", tags=["permit-templates"])


@router.get("", response_model=List[PermitResponse])
async def list_templates(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[PermitResponse]:
    return await service.list_templates(db, current_user)


@router.get("/{template_id}", response_model=PermitResponse)
async def get_template(
    template_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PermitResponse:
    try:
        return await service.get_template(db, current_user, template_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("", response_model=PermitResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    form: PermitTemplateForm,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PermitResponse:
    try:
        return await service.create_template(db, current_user, form)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{template_id}", response_model=PermitResponse)
async def update_template(
    template_id: int,
    form: PermitTemplateForm,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PermitResponse:
    """Replace a template's form. The permit number is kept."""
    try:
        return await service.update_template(db, current_user, template_id, form)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        await service.delete_template(db, current_user, template_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
