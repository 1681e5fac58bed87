from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.dependencies import get_current_user
from permit_office.auth.schemas import CurrentUser
from permit_office.db.session import get_db

from .schemas import DashboardStats
from . import service

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> DashboardStats:
    """Permit and invoice counts plus paid revenue over the parks the user can access."""
    return await service.get_stats(db, current_user)
