from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.api.invoices import service as invoice_service
from permit_office.api.invoices.schemas import InvoiceResponse, PaymentWebhookRequest
from permit_office.core.exceptions import ServiceError
from permit_office.db.session import get_db

router = APIRouter(prefix="/api/public", tags=["public"])


@router.patch("/invoices/{invoice_number}/payment", response_model=InvoiceResponse)
async def record_invoice_payment(
    invoice_number: str,
    payload: PaymentWebhookRequest,
    db: AsyncSession = Depends(get_db),
) -> InvoiceResponse:
    """Payment callback from the external payment site. No authentication."""
    try:
        return await invoice_service.record_payment(db, invoice_number, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
