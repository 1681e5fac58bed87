"""
Permit and permit template. Templates share the permit shape and are flagged with is_template;
their full form payload lives in template_data.
"""

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text

from permit_office.core.enums import PermitStatus
from permit_office.core.time_utils import utcnow
from permit_office.db.session import Base


class Permit(Base):
    __tablename__ = "permits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # SUP-<year>-NNNN for permits, TEMPLATE-<year>-NNNN for templates
    permit_number = Column(String(50), nullable=False, unique=True)
    permit_type = Column(String(255), nullable=False)
    park_id = Column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    location = Column(String(255), nullable=False)
    permittee_name = Column(String(255), nullable=False)
    permittee_email = Column(String(255), nullable=False)
    permittee_phone = Column(String(50), nullable=True)
    activity = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    participant_count = Column(Integer, nullable=True)
    max_participants = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    special_conditions = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=PermitStatus.PENDING.value)
    issue_date = Column(Date, nullable=True)
    is_template = Column(Boolean, nullable=False, default=False)
    template_data = Column(JSON, nullable=True)
    application_fee = Column(Numeric(10, 2), nullable=True)
    permit_fee = Column(Numeric(10, 2), nullable=True)
    refundable_deposit = Column(Numeric(10, 2), nullable=True)
    insurance_required = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
