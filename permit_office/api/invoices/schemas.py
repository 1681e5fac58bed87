from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from permit_office.core.enums import InvoiceStatus, PaymentOutcome


class InvoiceCreate(BaseModel):
    """
    Manual invoice. The owning park is taken from the application, else the
    permit, else park_id.
    """

    amount: int = Field(..., ge=0, description="Amount in cents")
    application_id: Optional[int] = None
    permit_id: Optional[int] = None
    park_id: Optional[int] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    status: InvoiceStatus = InvoiceStatus.PENDING


class InvoiceUpdate(BaseModel):
    amount: Optional[int] = Field(None, ge=0)
    status: Optional[InvoiceStatus] = None
    due_date: Optional[date] = None
    payment_date: Optional[datetime] = None
    transaction_id: Optional[str] = Field(None, max_length=255)


class InvoiceResponse(BaseModel):
    id: int
    invoice_number: str
    amount: int
    status: str
    issue_date: date
    due_date: date
    park_id: int
    application_id: Optional[int] = None
    permit_id: Optional[int] = None
    payment_date: Optional[datetime] = None
    transaction_id: Optional[str] = None
    created_at: datetime
    created_by: Optional[int] = None

    class Config:
        from_attributes = True


class PaymentWebhookRequest(BaseModel):
    """Payment result posted by the external payment site (camelCase on the wire)."""

    status: PaymentOutcome
    payment_date: Optional[datetime] = Field(None, alias="paymentDate")
    transaction_id: Optional[str] = Field(None, alias="transactionId", max_length=255)

    class Config:
        populate_by_name = True
