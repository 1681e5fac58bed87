from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.auth.models import User
from permit_office.auth.schemas import CurrentUser
from permit_office.auth.security import decode_user_id
from permit_office.db.session import get_db


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login-oauth")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the authenticated user from the access token. Role is re-read from the database."""
    user_id = decode_user_id(token)
    user = await db.get(User, user_id) if user_id is not None else None
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return CurrentUser(
        id=user.id,
        username=user.username,
        name=user.name,
        role=user.role,
    )
