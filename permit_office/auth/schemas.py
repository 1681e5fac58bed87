from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from permit_office.core.enums import UserRole


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str


class UserInfo(BaseModel):
    id: int
    username: str
    name: str
    email: str
    phone: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo
    issued_at: datetime


class RegisterRequest(BaseModel):
    """Admin-only user creation. Park assignments are created alongside the user."""

    username: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    role: UserRole = UserRole.STAFF
    assigned_park_ids: List[int] = Field(default_factory=list)


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated user for role and park checks."""

    id: int
    username: str
    name: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value
