import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from lms.db.base import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_name = Column(String(255), nullable=False)
    project_description = Column(Text, nullable=True)
    project_type = Column(String(32), nullable=True)
    duration_days = Column(Integer, nullable=True)
    instructions = Column(Text, nullable=True)
    deliverables = Column(Text, nullable=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ProjectAssignment(Base):
    __tablename__ = "project_assignments"
    __table_args__ = (UniqueConstraint("project_id", "assignee_id", name="uq_project_assignments_project_assignee"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    assignee_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    assigned_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    status = Column(String(16), nullable=False, server_default="Assigned")
    assigned_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ProjectMilestoneSubmission(Base):
    __tablename__ = "project_milestone_submissions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    assignment_id = Column(
        UUID(as_uuid=True), ForeignKey("project_assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    submitted_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    submission_content = Column(Text, nullable=True)
    file_url = Column(Text, nullable=True)  # external link or storage path
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ProjectEvaluation(Base):
    __tablename__ = "project_evaluations"
    __table_args__ = (
        UniqueConstraint("submission_id", name="uq_project_evaluations_submission"),
        CheckConstraint("overall_score BETWEEN 1 AND 5", name="ck_project_evaluations_overall_range"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    submission_id = Column(
        UUID(as_uuid=True), ForeignKey("project_milestone_submissions.id", ondelete="CASCADE"), nullable=False
    )
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    employee_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    evaluator_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    technical_score = Column(Integer, nullable=False)
    quality_score = Column(Integer, nullable=False)
    timeline_score = Column(Integer, nullable=False)
    communication_score = Column(Integer, nullable=False)
    innovation_score = Column(Integer, nullable=False)
    overall_score = Column(Numeric(3, 2), nullable=False)
    strengths = Column(Text, nullable=False)
    areas_for_improvement = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
