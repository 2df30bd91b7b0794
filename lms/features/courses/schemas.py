from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from lms.common.enums import CompletionRule, CourseType, DifficultyLevel

from .content import ModuleContent


class CourseCreate(BaseModel):
    course_name: str = Field(min_length=1)
    course_description: Optional[str] = None
    course_type: Optional[CourseType] = None
    difficulty_level: Optional[DifficultyLevel] = DifficultyLevel.BEGINNER
    target_role: Optional[str] = None
    learning_objectives: Optional[str] = None
    is_mandatory: bool = False
    completion_rule: CompletionRule = CompletionRule.PASS_ALL_ASSESSMENTS
    minimum_passing_percentage: float = Field(70.0, ge=0, le=100)

    @field_validator("course_name")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("course_name must not be blank")
        return v


class CourseUpdate(BaseModel):
    course_name: Optional[str] = None
    course_description: Optional[str] = None
    course_type: Optional[CourseType] = None
    difficulty_level: Optional[DifficultyLevel] = None
    target_role: Optional[str] = None
    learning_objectives: Optional[str] = None
    is_mandatory: Optional[bool] = None
    completion_rule: Optional[CompletionRule] = None
    minimum_passing_percentage: Optional[float] = Field(None, ge=0, le=100)


class Course(BaseModel):
    id: str
    course_name: str
    course_description: Optional[str] = None
    course_type: Optional[str] = None
    difficulty_level: Optional[str] = None
    target_role: Optional[str] = None
    learning_objectives: Optional[str] = None
    is_mandatory: bool = False
    completion_rule: Optional[str] = None
    minimum_passing_percentage: Optional[float] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class ModuleCreate(BaseModel):
    module_name: str = Field(min_length=1)
    module_description: Optional[str] = None
    content_type: Optional[str] = None
    content: ModuleContent = Field(default_factory=ModuleContent)
    duration_minutes: Optional[int] = Field(None, gt=0)


class ModuleUpdate(BaseModel):
    module_name: Optional[str] = None
    module_description: Optional[str] = None
    content_type: Optional[str] = None
    content: Optional[ModuleContent] = None
    duration_minutes: Optional[int] = Field(None, gt=0)


class Module(BaseModel):
    id: str
    course_id: str
    module_name: str
    module_description: Optional[str] = None
    module_order: int
    content_type: Optional[str] = None
    content: ModuleContent
    duration_minutes: Optional[int] = None


class ModuleReorder(BaseModel):
    module_ids: list[str]


class Enrollment(BaseModel):
    id: Optional[str] = None
    course_id: str
    employee_id: str
    status: str
    enrolled_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    assigned_by: Optional[str] = None


class AssignCourse(BaseModel):
    employee_ids: list[str] = Field(min_length=1)


class AssignResult(BaseModel):
    enrolled: list[str]
    skipped: list[str]


class TemplateProgress(BaseModel):
    template_id: str
    title: Optional[str] = None
    is_mandatory: bool
    passing_score: float
    attempts: int
    best_percentage: Optional[float] = None
    latest_percentage: Optional[float] = None
    passed: bool


class CourseProgress(BaseModel):
    course_id: str
    employee_id: str
    status: Optional[str] = None
    completion_rule: str
    rule_description: str
    templates_total: int
    templates_passed: int
    is_complete: bool
    templates: list[TemplateProgress]
