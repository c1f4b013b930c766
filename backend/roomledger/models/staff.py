from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from roomledger.db.session import Base

ROLE_ADMIN = "admin"
ROLE_RECEPTIONIST = "receptionist"
ROLE_WAITER = "waiter"
ROLES = (ROLE_ADMIN, ROLE_RECEPTIONIST, ROLE_WAITER)


class StaffMember(Base):
    """Staff account; its display name is the actor recorded in audit rows."""

    __tablename__ = "staff_members"

    id = Column(Integer, primary_key=True)
    display_name = Column(String(128), nullable=False)
    role = Column(String(32), nullable=False)
    api_token = Column(String(128), unique=True, nullable=False, index=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
