"""
Permit application submitted by an applicant. Status moves pending -> approved | disapproved;
notes are append-only.
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text

from permit_office.core.enums import ApplicationStatus
from permit_office.core.time_utils import utcnow
from permit_office.db.session import Base


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_number = Column(String(50), nullable=False, unique=True)
    park_id = Column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    permit_type_id = Column(Integer, ForeignKey("permits.id", ondelete="SET NULL"), nullable=True)
    location_id = Column(Integer, nullable=True)
    event_date = Column(DateTime(timezone=True), nullable=True)
    applicant_type = Column(String(50), nullable=True)
    organization_name = Column(String(255), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(20), nullable=True)
    event_title = Column(String(255), nullable=True)
    event_description = Column(Text, nullable=True)
    attendees = Column(Integer, nullable=True)
    setup_time = Column(String(20), nullable=True)
    start_time = Column(String(20), nullable=True)
    end_time = Column(String(20), nullable=True)
    additional_requirements = Column(JSON, nullable=True)
    special_requests = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ApplicationStatus.PENDING.value, index=True)
    total_fee = Column(Numeric(10, 2), nullable=True)
    application_fee = Column(Numeric(10, 2), nullable=True)
    permit_fee = Column(Numeric(10, 2), nullable=True)
    agreed_to_terms = Column(Boolean, nullable=False, default=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
