from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from permit_office.core.enums import UserRole
from permit_office.core.time_utils import utcnow
from permit_office.db.session import Base


class User(Base):
    """Back-office user. Admins see every park; managers and staff are scoped by park assignments."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    # admin | manager | staff
    role = Column(String(20), nullable=False, default=UserRole.STAFF.value)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class UserParkAssignment(Base):
    """Junction row: existence of (user, park) grants the user access to the park's records."""

    __tablename__ = "user_park_assignments"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    park_id = Column(Integer, ForeignKey("parks.id", ondelete="CASCADE"), primary_key=True)
