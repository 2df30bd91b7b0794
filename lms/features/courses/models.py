import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from lms.db.base import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_name = Column(String(255), nullable=False)
    course_description = Column(Text, nullable=True)
    course_type = Column(String(64), nullable=True)
    difficulty_level = Column(String(32), nullable=True, server_default="Beginner")
    target_role = Column(String(64), nullable=True)
    learning_objectives = Column(Text, nullable=True)
    is_mandatory = Column(Boolean, nullable=False, server_default="false")
    completion_rule = Column(String(64), nullable=False, server_default="pass_all_assessments")
    minimum_passing_percentage = Column(Numeric(5, 2), nullable=False, server_default="70")
    created_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    modules = relationship("CourseModule", cascade="all, delete-orphan", passive_deletes=True)
    assessment_templates = relationship("AssessmentTemplate", cascade="all, delete-orphan", passive_deletes=True)


class CourseModule(Base):
    __tablename__ = "course_modules"
    __table_args__ = (UniqueConstraint("course_id", "module_order", name="uq_course_modules_course_order"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    module_name = Column(String(255), nullable=False)
    module_description = Column(Text, nullable=True)
    module_order = Column(Integer, nullable=False)
    content_type = Column(String(32), nullable=True)
    # JSON-encoded ModuleContent halves, see lms.features.courses.content
    content_url = Column(Text, nullable=True)
    content_path = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=True)


class CourseEnrollment(Base):
    __tablename__ = "course_enrollments"
    __table_args__ = (UniqueConstraint("course_id", "employee_id", name="uq_course_enrollments_course_employee"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    status = Column(String(16), nullable=False, server_default="enrolled")
    enrolled_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completion_date = Column(DateTime(timezone=True), nullable=True)
    assigned_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
