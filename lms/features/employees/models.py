import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from lms.db.base import Base


class EmployeeDocument(Base):
    __tablename__ = "employee_documents"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    document_name = Column(String(255), nullable=False)
    document_type = Column(String(64), nullable=False)
    file_path = Column(Text, nullable=False)  # "<employee_id>/<ts>-<filename>" in the documents bucket
    uploaded_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
