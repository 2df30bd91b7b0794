import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.sql import func

from lms.db.base import Base


class TrainingSession(Base):
    __tablename__ = "training_sessions"
    __table_args__ = (CheckConstraint("end_datetime > start_datetime", name="ck_training_sessions_window"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_name = Column(String(255), nullable=False)
    session_type = Column(String(32), nullable=False, server_default="Training")
    trainer_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    start_datetime = Column(DateTime(timezone=True), nullable=False)
    end_datetime = Column(DateTime(timezone=True), nullable=False)
    meeting_platform = Column(String(32), nullable=True)
    meeting_link = Column(Text, nullable=False)
    attendees = Column(ARRAY(UUID(as_uuid=False)), nullable=False, server_default="{}")
    created_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
