from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from permit_office.core.enums import UserRole


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    role: Optional[UserRole] = None
    password: Optional[str] = Field(None, min_length=8)


class UserParksResponse(BaseModel):
    user_id: int
    park_ids: List[int]
