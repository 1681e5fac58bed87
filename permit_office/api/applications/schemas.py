from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from permit_office.core.enums import MessagingMethod


class ApplicationCreate(BaseModel):
    park_id: int
    permit_type_id: Optional[int] = None
    location_id: Optional[int] = None
    event_date: Optional[datetime] = None
    applicant_type: Optional[str] = Field(None, max_length=50)
    organization_name: Optional[str] = Field(None, max_length=255)
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)
    event_title: Optional[str] = Field(None, max_length=255)
    event_description: Optional[str] = None
    attendees: Optional[int] = Field(None, ge=0)
    setup_time: Optional[str] = Field(None, max_length=20)
    start_time: Optional[str] = Field(None, max_length=20)
    end_time: Optional[str] = Field(None, max_length=20)
    additional_requirements: Optional[Dict[str, Any]] = None
    special_requests: Optional[str] = None
    total_fee: Optional[Decimal] = Field(None, ge=0)
    application_fee: Optional[Decimal] = Field(None, ge=0)
    permit_fee: Optional[Decimal] = Field(None, ge=0)
    agreed_to_terms: bool = False


class ApplicationUpdate(BaseModel):
    """
    Partial update. Status changes go through approve/disapprove; notes are
    appended as a stamped entry, never replaced.
    """

    event_date: Optional[datetime] = None
    organization_name: Optional[str] = Field(None, max_length=255)
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)
    event_title: Optional[str] = Field(None, max_length=255)
    event_description: Optional[str] = None
    attendees: Optional[int] = Field(None, ge=0)
    setup_time: Optional[str] = Field(None, max_length=20)
    start_time: Optional[str] = Field(None, max_length=20)
    end_time: Optional[str] = Field(None, max_length=20)
    special_requests: Optional[str] = None
    notes: Optional[str] = Field(None, min_length=1)

    @field_validator("notes")
    @classmethod
    def notes_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Notes must not be blank")
        return v.strip()


class DisapproveRequest(BaseModel):
    reason: str = Field(..., min_length=1)
    method: MessagingMethod

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Reason must not be blank")
        return v.strip()


class ApplicationResponse(BaseModel):
    id: int
    application_number: str
    park_id: int
    permit_type_id: Optional[int] = None
    location_id: Optional[int] = None
    event_date: Optional[datetime] = None
    applicant_type: Optional[str] = None
    organization_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    event_title: Optional[str] = None
    event_description: Optional[str] = None
    attendees: Optional[int] = None
    setup_time: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    additional_requirements: Optional[Dict[str, Any]] = None
    special_requests: Optional[str] = None
    status: str
    total_fee: Optional[Decimal] = None
    application_fee: Optional[Decimal] = None
    permit_fee: Optional[Decimal] = None
    agreed_to_terms: bool = False
    is_paid: bool = False
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ApprovedApplicationResponse(ApplicationResponse):
    """Approved application joined with its park and latest invoice, for the permit documents view."""

    park_name: Optional[str] = None
    invoice_number: Optional[str] = None
    invoice_status: Optional[str] = None
    invoice_amount: Optional[int] = None
