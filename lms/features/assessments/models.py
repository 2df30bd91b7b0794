import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from lms.db.base import Base


class AssessmentTemplate(Base):
    __tablename__ = "assessment_templates"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    assessment_type = Column(String(32), nullable=False, server_default="quiz")
    passing_score = Column(Integer, nullable=False, server_default="70")
    time_limit_minutes = Column(Integer, nullable=True, server_default="60")
    instructions = Column(Text, nullable=True)
    is_mandatory = Column(Boolean, nullable=False, server_default="true")
    created_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    questions = relationship("AssessmentQuestion", cascade="all, delete-orphan", passive_deletes=True)


class AssessmentQuestion(Base):
    __tablename__ = "assessment_questions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    assessment_template_id = Column(
        UUID(as_uuid=True), ForeignKey("assessment_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_text = Column(Text, nullable=False)
    question_type = Column(String(32), nullable=False)
    points = Column(Integer, nullable=False, server_default="1")
    explanation = Column(Text, nullable=True)
    question_order = Column(Integer, nullable=False)

    options = relationship("QuestionOption", cascade="all, delete-orphan", passive_deletes=True)


class QuestionOption(Base):
    __tablename__ = "question_options"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    question_id = Column(UUID(as_uuid=True), ForeignKey("assessment_questions.id", ondelete="CASCADE"), nullable=False, index=True)
    option_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, server_default="false")
    option_order = Column(Integer, nullable=False)


class CourseAssessmentResult(Base):
    """Append-only attempt log; a retake is a new row."""

    __tablename__ = "course_assessments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    course_id = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    assessment_template_id = Column(
        UUID(as_uuid=True), ForeignKey("assessment_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assessment_type = Column(String(32), nullable=True)
    total_score = Column(Integer, nullable=True)
    percentage = Column(Numeric(7, 4), nullable=True)
    passing_score = Column(Integer, nullable=True)  # snapshot at attempt time
    is_mandatory = Column(Boolean, nullable=True)
    grade = Column(String(2), nullable=True)
    status = Column(String(16), nullable=False, server_default="Pending")
    completion_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
