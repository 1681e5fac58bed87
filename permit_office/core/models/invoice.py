"""Invoice for a permit fee. Amount is stored in integer minor currency units (cents)."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String

from permit_office.core.enums import InvoiceStatus
from permit_office.core.time_utils import utcnow
from permit_office.db.session import Base


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_number = Column(String(50), nullable=False, unique=True)
    # Owning park, copied from the application/permit at creation; drives access checks
    park_id = Column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    application_id = Column(Integer, ForeignKey("applications.id", ondelete="SET NULL"), nullable=True, index=True)
    permit_id = Column(Integer, ForeignKey("permits.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=InvoiceStatus.PENDING.value)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    payment_date = Column(DateTime(timezone=True), nullable=True)
    transaction_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
