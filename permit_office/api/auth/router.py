from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.dependencies import get_current_user
from permit_office.auth.models import User
from permit_office.auth.rbac import require_admin
from permit_office.auth.schemas import CurrentUser, LoginRequest, LoginResponse, RegisterRequest, UserInfo
from permit_office.auth.services import ServiceError, login_user, register_user
from permit_office.db.session import get_db

router = APIRouter(prefix="/api", tags=["auth"])


@router.post(
    "/auth/register",
    response_model=UserInfo,
    status_code=http_status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
) -> UserInfo:
    """Create a back-office user. Open self-registration is not offered."""
    try:
        return await register_user(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/auth/login",
    response_model=LoginResponse,
    status_code=http_status.HTTP_200_OK,
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    try:
        return await login_user(db, payload)
    except ServiceError as e:
        if e.status_code == http_status.HTTP_500_INTERNAL_SERVER_ERROR:
            raise HTTPException(status_code=e.status_code, detail="Internal server error")
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/auth/login-oauth")
async def login_oauth(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    payload = LoginRequest(
        username=form_data.username.strip(),
        password=form_data.password,
    )
    try:
        result = await login_user(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {
        "access_token": result.access_token,
        "token_type": "bearer",
    }


@router.get("/user", response_model=UserInfo)
async def read_current_user(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> UserInfo:
    user = await db.get(User, current_user.id)
    return UserInfo.model_validate(user)
