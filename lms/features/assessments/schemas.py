from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from lms.common.enums import AssessmentType, QuestionType


class TemplateCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    assessment_type: AssessmentType = AssessmentType.QUIZ
    passing_score: int = Field(70, ge=0, le=100)
    time_limit_minutes: int = Field(60, gt=0)
    instructions: Optional[str] = None
    is_mandatory: bool = True


class TemplateUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    assessment_type: Optional[AssessmentType] = None
    passing_score: Optional[int] = Field(None, ge=0, le=100)
    time_limit_minutes: Optional[int] = Field(None, gt=0)
    instructions: Optional[str] = None
    is_mandatory: Optional[bool] = None


class Template(BaseModel):
    id: str
    course_id: str
    title: str
    description: Optional[str] = None
    assessment_type: Optional[str] = None
    passing_score: Optional[float] = None
    time_limit_minutes: Optional[int] = None
    instructions: Optional[str] = None
    is_mandatory: bool = True
    question_count: Optional[int] = None


class OptionIn(BaseModel):
    option_text: str
    is_correct: bool = False


class QuestionIn(BaseModel):
    question_text: str = Field(min_length=1)
    question_type: QuestionType = QuestionType.MULTIPLE_CHOICE
    points: int = Field(1, gt=0)
    explanation: Optional[str] = None
    options: list[OptionIn] = Field(default_factory=list)


class OptionOut(BaseModel):
    id: str
    option_text: str
    option_order: int
    is_correct: Optional[bool] = None


class QuestionOut(BaseModel):
    id: str
    question_text: str
    question_type: str
    points: int
    question_order: int
    explanation: Optional[str] = None
    options: list[OptionOut] = Field(default_factory=list)


class AttemptStarted(BaseModel):
    attempt_id: str
    template_id: str
    course_id: str
    title: str
    time_limit_seconds: int
    seconds_remaining: float
    questions: list[QuestionOut]


class AnswersIn(BaseModel):
    answers: dict[str, list[str]] = Field(default_factory=dict)


class AttemptState(BaseModel):
    attempt_id: str
    state: str
    seconds_remaining: float
    answered: int


class AttemptResult(BaseModel):
    id: Optional[str] = None
    attempt_id: Optional[str] = None
    template_id: str
    course_id: str
    earned_points: int
    total_points: int
    percentage: float
    grade: str
    passed: bool
    auto_submitted: bool = False
    course_completed: bool = False


class ResultRow(BaseModel):
    id: str
    employee_id: str
    course_id: str
    assessment_template_id: str
    assessment_type: Optional[str] = None
    total_score: Optional[int] = None
    percentage: Optional[float] = None
    passing_score: Optional[float] = None
    is_mandatory: Optional[bool] = None
    grade: Optional[str] = None
    status: str
    completion_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


class Standing(BaseModel):
    template_id: str
    title: Optional[str] = None
    attempts: int
    best_percentage: Optional[float] = None
    latest_percentage: Optional[float] = None
    passed: bool
