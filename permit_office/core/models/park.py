"""Park: a managed site and the top-level scoping unit for authorization."""

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from permit_office.core.time_utils import utcnow
from permit_office.db.session import Base


class Park(Base):
    __tablename__ = "parks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=True, default="active")
    # Sub-locations within the park, e.g. ["North Pavilion", "Boat Ramp"]
    locations = Column(JSON, nullable=False, default=list)
    waiver = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
