from fastapi import Depends, HTTPException, status

from permit_office.auth.dependencies import get_current_user
from permit_office.auth.schemas import CurrentUser
from permit_office.core.enums import UserRole


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Require the admin role. Used for park, user and assignment administration."""
    if current_user.role != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators can perform this action",
        )
    return current_user


def sees_all_parks(current_user: CurrentUser) -> bool:
    """Admins and managers read the full park directory; staff only their assigned parks."""
    return current_user.role in (UserRole.ADMIN.value, UserRole.MANAGER.value)
