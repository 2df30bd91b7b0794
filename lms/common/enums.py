"""Closed value sets shared by every feature.

Rows arrive from the store as free text. ``parse`` is the single place an
unknown value is rejected, so business logic only ever sees members.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, TypeVar

from .errors import ValidationError

E = TypeVar("E", bound="LabelEnum")


class LabelEnum(str, Enum):
    @classmethod
    def parse(cls: type[E], value: object) -> E:
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        raise ValidationError(f"invalid_{cls.__name__.lower()}: {value!r}")

    @classmethod
    def try_parse(cls: type[E], value: object) -> Optional[E]:
        try:
            return cls.parse(value)
        except ValidationError:
            return None

    @classmethod
    def values(cls) -> list[str]:
        return [m.value for m in cls]


class RoleName(LabelEnum):
    MANAGEMENT = "Management"
    HR = "HR"
    TEAM_LEAD = "Team Lead"
    TRAINEE = "Trainee"


class EmployeeStatus(LabelEnum):
    PRE_JOINING = "Pre-Joining"
    ACTIVE = "Active"
    ON_LEAVE = "On-Leave"
    TERMINATED = "Terminated"
    RESIGNED = "Resigned"


class CourseType(LabelEnum):
    PRE_JOINING = "Pre-Joining"
    ONBOARDING = "Onboarding"
    TECHNICAL = "Technical"
    SOFT_SKILLS = "Soft Skills"
    COMPLIANCE = "Compliance"
    LEADERSHIP = "Leadership"


class DifficultyLevel(LabelEnum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"


class CompletionRule(LabelEnum):
    PASS_ALL_ASSESSMENTS = "pass_all_assessments"
    PASS_MINIMUM_PERCENTAGE = "pass_minimum_percentage"
    PASS_MANDATORY_ONLY = "pass_mandatory_only"


class EnrollmentStatus(LabelEnum):
    ENROLLED = "enrolled"
    COMPLETED = "completed"


class AssessmentType(LabelEnum):
    QUIZ = "quiz"
    PROJECT = "project"
    PRACTICAL = "practical"


class QuestionType(LabelEnum):
    MULTIPLE_CHOICE = "multiple_choice"
    MULTIPLE_SELECT = "multiple_select"
    TRUE_FALSE = "true_false"
    ESSAY = "essay"
    PRACTICAL = "practical"

    @property
    def is_choice(self) -> bool:
        return self in _CHOICE_TYPES


_CHOICE_TYPES = frozenset({QuestionType.MULTIPLE_CHOICE, QuestionType.MULTIPLE_SELECT, QuestionType.TRUE_FALSE})


class ResultStatus(LabelEnum):
    PENDING = "Pending"
    COMPLETED = "Completed"


class Grade(LabelEnum):
    A = "A"
    B = "B"
    C = "C"
    F = "F"


class AssignmentStatus(LabelEnum):
    ASSIGNED = "Assigned"
    SUBMITTED = "Submitted"
    EVALUATED = "Evaluated"


class ProjectType(LabelEnum):
    INDIVIDUAL = "Individual"
    TEAM = "Team"
    CAPSTONE = "Capstone"
    REAL_WORLD = "Real World"
    SIMULATION = "Simulation"


class SessionType(LabelEnum):
    ORIENTATION = "Orientation"
    TRAINING = "Training"
    WORKSHOP = "Workshop"
    WEBINAR = "Webinar"
    ASSESSMENT = "Assessment"
    ONE_ON_ONE = "One-on-One"


class MeetingPlatform(LabelEnum):
    GOOGLE_MEET = "Google Meet"
    ZOOM = "Zoom"
    MICROSOFT_TEAMS = "Microsoft Teams"
    WEBEX = "Webex"
    IN_PERSON = "In Person"


class DocumentType(LabelEnum):
    ID_PROOF = "ID Proof"
    EDUCATION_CERTIFICATE = "Education Certificate"
    EXPERIENCE_LETTER = "Experience Letter"
    RESUME = "Resume"
    CONTRACT = "Contract"
    POLICY_DOCUMENT = "Policy Document"
    OTHER = "Other"
