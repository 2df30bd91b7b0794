"""create lms schema

Revision ID: 0001_lms_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_lms_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False, server_default=sa.text("gen_random_uuid()")
    )


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)


def _profile_fk(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "roles",
        _uuid_pk(),
        sa.Column("role_name", sa.String(length=64), nullable=False, unique=True),
        sa.Column("role_description", sa.Text(), nullable=True),
    )
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("employee_code", sa.String(length=32), nullable=True, unique=True),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("designation", sa.String(length=100), nullable=True),
        sa.Column("current_status", sa.String(length=32), nullable=False, server_default="Pre-Joining"),
        sa.Column("date_of_joining", sa.Date(), nullable=True),
        sa.Column("role_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("roles.id"), nullable=True),
        sa.Column(
            "manager_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
        ),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.bulk_insert(
        sa.table("roles", sa.column("role_name", sa.String), sa.column("role_description", sa.Text)),
        [
            {"role_name": "Management", "role_description": "Full administrative access"},
            {"role_name": "HR", "role_description": "Employee and training administration"},
            {"role_name": "Team Lead", "role_description": "Course, project and evaluation management"},
            {"role_name": "Trainee", "role_description": "Takes courses, assessments and projects"},
        ],
    )

    op.create_table(
        "employee_documents",
        _uuid_pk(),
        _profile_fk("employee_id", nullable=False),
        sa.Column("document_name", sa.String(length=255), nullable=False),
        sa.Column("document_type", sa.String(length=64), nullable=False),
        sa.Column("file_path", sa.Text(), nullable=False),
        _profile_fk("uploaded_by"),
        _created_at(),
    )
    op.create_index("ix_employee_documents_employee_id", "employee_documents", ["employee_id"])

    op.create_table(
        "courses",
        _uuid_pk(),
        sa.Column("course_name", sa.String(length=255), nullable=False),
        sa.Column("course_description", sa.Text(), nullable=True),
        sa.Column("course_type", sa.String(length=64), nullable=True),
        sa.Column("difficulty_level", sa.String(length=32), nullable=True, server_default="Beginner"),
        sa.Column("target_role", sa.String(length=64), nullable=True),
        sa.Column("learning_objectives", sa.Text(), nullable=True),
        sa.Column("is_mandatory", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("completion_rule", sa.String(length=64), nullable=False, server_default="pass_all_assessments"),
        sa.Column("minimum_passing_percentage", sa.Numeric(5, 2), nullable=False, server_default="70"),
        _profile_fk("created_by"),
        _created_at(),
    )
    op.create_table(
        "course_modules",
        _uuid_pk(),
        sa.Column(
            "course_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("module_name", sa.String(length=255), nullable=False),
        sa.Column("module_description", sa.Text(), nullable=True),
        sa.Column("module_order", sa.Integer(), nullable=False),
        sa.Column("content_type", sa.String(length=32), nullable=True),
        sa.Column("content_url", sa.Text(), nullable=True),
        sa.Column("content_path", sa.Text(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.UniqueConstraint("course_id", "module_order", name="uq_course_modules_course_order"),
    )
    op.create_index("ix_course_modules_course_id", "course_modules", ["course_id"])
    op.create_table(
        "course_enrollments",
        _uuid_pk(),
        sa.Column(
            "course_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
        ),
        _profile_fk("employee_id", nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="enrolled"),
        sa.Column("enrolled_date", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("completion_date", sa.DateTime(timezone=True), nullable=True),
        _profile_fk("assigned_by"),
        sa.UniqueConstraint("course_id", "employee_id", name="uq_course_enrollments_course_employee"),
    )
    op.create_index("ix_course_enrollments_course_id", "course_enrollments", ["course_id"])
    op.create_index("ix_course_enrollments_employee_id", "course_enrollments", ["employee_id"])

    op.create_table(
        "assessment_templates",
        _uuid_pk(),
        sa.Column(
            "course_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("assessment_type", sa.String(length=32), nullable=False, server_default="quiz"),
        sa.Column("passing_score", sa.Integer(), nullable=False, server_default="70"),
        sa.Column("time_limit_minutes", sa.Integer(), nullable=True, server_default="60"),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("is_mandatory", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _profile_fk("created_by"),
        _created_at(),
    )
    op.create_index("ix_assessment_templates_course_id", "assessment_templates", ["course_id"])
    op.create_table(
        "assessment_questions",
        _uuid_pk(),
        sa.Column(
            "assessment_template_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("assessment_templates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("question_type", sa.String(length=32), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("question_order", sa.Integer(), nullable=False),
    )
    op.create_index("ix_assessment_questions_assessment_template_id", "assessment_questions", ["assessment_template_id"])
    op.create_table(
        "question_options",
        _uuid_pk(),
        sa.Column(
            "question_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("assessment_questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("option_text", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("option_order", sa.Integer(), nullable=False),
    )
    op.create_index("ix_question_options_question_id", "question_options", ["question_id"])
    op.create_table(
        "course_assessments",
        _uuid_pk(),
        _profile_fk("employee_id", nullable=False),
        sa.Column(
            "course_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "assessment_template_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("assessment_templates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("assessment_type", sa.String(length=32), nullable=True),
        sa.Column("total_score", sa.Integer(), nullable=True),
        sa.Column("percentage", sa.Numeric(7, 4), nullable=True),
        sa.Column("passing_score", sa.Integer(), nullable=True),
        sa.Column("is_mandatory", sa.Boolean(), nullable=True),
        sa.Column("grade", sa.String(length=2), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Pending"),
        sa.Column("completion_date", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_course_assessments_employee_id", "course_assessments", ["employee_id"])
    op.create_index("ix_course_assessments_course_id", "course_assessments", ["course_id"])
    op.create_index("ix_course_assessments_assessment_template_id", "course_assessments", ["assessment_template_id"])

    op.create_table(
        "projects",
        _uuid_pk(),
        sa.Column("project_name", sa.String(length=255), nullable=False),
        sa.Column("project_description", sa.Text(), nullable=True),
        sa.Column("project_type", sa.String(length=32), nullable=True),
        sa.Column("duration_days", sa.Integer(), nullable=True),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("deliverables", sa.Text(), nullable=True),
        _profile_fk("created_by"),
        _created_at(),
    )
    op.create_table(
        "project_assignments",
        _uuid_pk(),
        sa.Column(
            "project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
        ),
        _profile_fk("assignee_id", nullable=False),
        _profile_fk("assigned_by"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Assigned"),
        sa.Column("assigned_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("project_id", "assignee_id", name="uq_project_assignments_project_assignee"),
    )
    op.create_index("ix_project_assignments_project_id", "project_assignments", ["project_id"])
    op.create_index("ix_project_assignments_assignee_id", "project_assignments", ["assignee_id"])
    op.create_table(
        "project_milestone_submissions",
        _uuid_pk(),
        sa.Column(
            "assignment_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("project_assignments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _profile_fk("submitted_by", nullable=False),
        sa.Column("submission_content", sa.Text(), nullable=True),
        sa.Column("file_url", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index(
        "ix_project_milestone_submissions_assignment_id", "project_milestone_submissions", ["assignment_id"]
    )
    op.create_table(
        "project_evaluations",
        _uuid_pk(),
        sa.Column(
            "submission_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("project_milestone_submissions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
        ),
        _profile_fk("employee_id", nullable=False),
        _profile_fk("evaluator_id", nullable=False),
        sa.Column("technical_score", sa.Integer(), nullable=False),
        sa.Column("quality_score", sa.Integer(), nullable=False),
        sa.Column("timeline_score", sa.Integer(), nullable=False),
        sa.Column("communication_score", sa.Integer(), nullable=False),
        sa.Column("innovation_score", sa.Integer(), nullable=False),
        sa.Column("overall_score", sa.Numeric(3, 2), nullable=False),
        sa.Column("strengths", sa.Text(), nullable=False),
        sa.Column("areas_for_improvement", sa.Text(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("submission_id", name="uq_project_evaluations_submission"),
        sa.CheckConstraint("overall_score BETWEEN 1 AND 5", name="ck_project_evaluations_overall_range"),
    )

    op.create_table(
        "training_sessions",
        _uuid_pk(),
        sa.Column("session_name", sa.String(length=255), nullable=False),
        sa.Column("session_type", sa.String(length=32), nullable=False, server_default="Training"),
        _profile_fk("trainer_id", nullable=False),
        sa.Column("start_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("meeting_platform", sa.String(length=32), nullable=True),
        sa.Column("meeting_link", sa.Text(), nullable=False),
        sa.Column(
            "attendees",
            postgresql.ARRAY(postgresql.UUID(as_uuid=False)),
            nullable=False,
            server_default=sa.text("'{}'"),
        ),
        _profile_fk("created_by"),
        _created_at(),
        sa.CheckConstraint("end_datetime > start_datetime", name="ck_training_sessions_window"),
    )


def downgrade() -> None:
    for table in (
        "training_sessions",
        "project_evaluations",
        "project_milestone_submissions",
        "project_assignments",
        "projects",
        "course_assessments",
        "question_options",
        "assessment_questions",
        "assessment_templates",
        "course_enrollments",
        "course_modules",
        "courses",
        "employee_documents",
        "profiles",
        "roles",
    ):
        op.drop_table(table)
