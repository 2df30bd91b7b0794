from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from lms.common.enums import ProjectType


class ProjectCreate(BaseModel):
    project_name: str = Field(min_length=1)
    project_description: Optional[str] = None
    project_type: Optional[ProjectType] = None
    duration_days: Optional[int] = Field(None, gt=0)
    instructions: Optional[str] = None
    deliverables: Optional[str] = None


class ProjectUpdate(BaseModel):
    project_name: Optional[str] = None
    project_description: Optional[str] = None
    project_type: Optional[ProjectType] = None
    duration_days: Optional[int] = Field(None, gt=0)
    instructions: Optional[str] = None
    deliverables: Optional[str] = None


class Project(BaseModel):
    id: str
    project_name: str
    project_description: Optional[str] = None
    project_type: Optional[str] = None
    duration_days: Optional[int] = None
    instructions: Optional[str] = None
    deliverables: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    assignment_count: Optional[int] = None


class AssignProject(BaseModel):
    trainee_ids: list[str] = Field(min_length=1)


class Assignment(BaseModel):
    id: str
    project_id: str
    assignee_id: str
    assigned_by: Optional[str] = None
    status: str
    assigned_at: Optional[datetime] = None
    project: Optional[Project] = None


class AssignResult(BaseModel):
    assigned: list[Assignment]
    skipped: list[str]


class Submission(BaseModel):
    id: str
    assignment_id: str
    submitted_by: str
    submission_content: Optional[str] = None
    file_url: Optional[str] = None
    submitted_at: Optional[datetime] = None


class EvaluationIn(BaseModel):
    # out-of-range scores are clamped to 1..5 by the aggregator
    technical_score: int
    quality_score: int
    timeline_score: int
    communication_score: int
    innovation_score: int
    strengths: str
    areas_for_improvement: str


class Evaluation(BaseModel):
    id: str
    submission_id: str
    project_id: str
    employee_id: str
    evaluator_id: str
    technical_score: int
    quality_score: int
    timeline_score: int
    communication_score: int
    innovation_score: int
    overall_score: float
    strengths: str
    areas_for_improvement: str
    created_at: Optional[datetime] = None


class AssignmentDetail(BaseModel):
    assignment: Assignment
    submissions: list[Submission]
    evaluations: list[Evaluation]
