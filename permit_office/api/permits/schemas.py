from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field

from permit_office.core.enums import PermitStatus


class PermitCreate(BaseModel):
    permit_type: str = Field(..., min_length=1, max_length=255)
    park_id: int
    location: str = Field(..., min_length=1, max_length=255)
    permittee_name: str = Field(..., min_length=1, max_length=255)
    permittee_email: EmailStr
    permittee_phone: Optional[str] = Field(None, max_length=50)
    activity: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    participant_count: Optional[int] = Field(None, ge=0)
    max_participants: Optional[int] = Field(None, ge=0)
    start_date: date
    end_date: date
    special_conditions: Optional[str] = None
    status: PermitStatus = PermitStatus.PENDING
    application_fee: Optional[Decimal] = Field(None, ge=0)
    permit_fee: Optional[Decimal] = Field(None, ge=0)
    refundable_deposit: Optional[Decimal] = Field(None, ge=0)
    insurance_required: bool = False


class PermitUpdate(BaseModel):
    permit_type: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    permittee_name: Optional[str] = Field(None, min_length=1, max_length=255)
    permittee_email: Optional[EmailStr] = None
    permittee_phone: Optional[str] = Field(None, max_length=50)
    activity: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    participant_count: Optional[int] = Field(None, ge=0)
    max_participants: Optional[int] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    special_conditions: Optional[str] = None
    status: Optional[PermitStatus] = None
    application_fee: Optional[Decimal] = Field(None, ge=0)
    permit_fee: Optional[Decimal] = Field(None, ge=0)
    refundable_deposit: Optional[Decimal] = Field(None, ge=0)
    insurance_required: Optional[bool] = None


class PermitResponse(BaseModel):
    id: int
    permit_number: str
    permit_type: str
    park_id: int
    location: str
    permittee_name: str
    permittee_email: str
    permittee_phone: Optional[str] = None
    activity: str
    description: Optional[str] = None
    participant_count: Optional[int] = None
    max_participants: Optional[int] = None
    start_date: date
    end_date: date
    special_conditions: Optional[str] = None
    status: str
    issue_date: Optional[date] = None
    is_template: bool = False
    template_data: Optional[Dict[str, Any]] = None
    application_fee: Optional[Decimal] = None
    permit_fee: Optional[Decimal] = None
    refundable_deposit: Optional[Decimal] = None
    insurance_required: bool = False
    created_at: datetime
    created_by: Optional[int] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[int] = None

    class Config:
        from_attributes = True
