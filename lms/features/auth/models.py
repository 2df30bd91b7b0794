import uuid

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from lms.db.base import Base


class Role(Base):
    __tablename__ = "roles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Free text in the store; lms.common.enums.RoleName is the closed set.
    role_name = Column(String(64), nullable=False, unique=True)
    role_description = Column(Text, nullable=True)


class Profile(Base):
    """One row per auth user, created by the sign-up trigger. Never hard-deleted."""

    __tablename__ = "profiles"

    id = Column(UUID(as_uuid=True), primary_key=True)  # = auth.users.id
    employee_code = Column(String(32), nullable=True, unique=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    department = Column(String(100), nullable=True)
    designation = Column(String(100), nullable=True)
    current_status = Column(String(32), nullable=False, server_default="Pre-Joining")
    date_of_joining = Column(Date, nullable=True)
    role_id = Column(UUID(as_uuid=True), ForeignKey("roles.id"), nullable=True)
    manager_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
