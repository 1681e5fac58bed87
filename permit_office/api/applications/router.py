from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.dependencies import get_current_user
from permit_office.auth.schemas import CurrentUser
from permit_office.core.enums import ApplicationStatus
from permit_office.core.exceptions import ServiceError
from permit_office.db.session import get_db
from permit_office.notifications.service import Notifier, get_notifier

from .schemas import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationUpdate,
    ApprovedApplicationResponse,
    DisapproveRequest,
)
from . import service

router = APIRouter(prefix="/api/applications", tags=["applications"])


@router.get("", response_model=List[ApplicationResponse])
async def list_applications(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[ApplicationResponse]:
    return await service.list_applications(db, current_user)


@router.get("/status/{application_status}", response_model=List[ApplicationResponse])
async def list_applications_by_status(
    application_status: ApplicationStatus,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[ApplicationResponse]:
    return await service.list_applications(db, current_user, status_filter=application_status)


@router.get("/approved-with-invoices", response_model=List[ApprovedApplicationResponse])
async def list_approved_with_invoices(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[ApprovedApplicationResponse]:
    """Approved applications with park name and invoice status, for the permit documents page."""
    return await service.list_approved_with_invoices(db, current_user)


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    try:
        return await service.get_application(db, current_user, application_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def create_application(
    payload: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    try:
        return await service.create_application(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{application_id}", response_model=ApplicationResponse)
async def update_application(
    application_id: int,
    payload: ApplicationUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    """Edit applicant details. A notes value is appended as a new stamped entry."""
    try:
        return await service.update_application(db, current_user, application_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{application_id}/approve", response_model=ApplicationResponse)
async def approve_application(
    application_id: int,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
) -> ApplicationResponse:
    """Approve a pending application. The invoice is created with the approval; the email goes out afterwards."""
    try:
        application, notice = await service.approve_application(db, current_user, application_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    background_tasks.add_task(notifier.send_approval, notice)
    return application


@router.patch("/{application_id}/disapprove", response_model=ApplicationResponse)
async def disapprove_application(
    application_id: int,
    payload: DisapproveRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
) -> ApplicationResponse:
    try:
        application, notice = await service.disapprove_application(db, current_user, application_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    background_tasks.add_task(notifier.send_disapproval, notice)
    return application


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        await service.delete_application(db, current_user, application_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
