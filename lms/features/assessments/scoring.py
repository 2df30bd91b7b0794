"""Assessment scoring.

Pure and deterministic: the same answers against the same questions always
produce the same result.

    - total points: sum of every question's points, ungraded types included
    - multiple_choice / true_false: full points iff exactly one option is
      selected and it is marked correct
    - multiple_select: full points iff the selected set equals the correct set
    - essay / practical: never earn points here (graded out of band)
    - percentage: earned / total * 100, or 0 when total is 0

Grade bands and pass/fail are separate judgments on the percentage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence

from lms.common.enums import Grade, QuestionType
from lms.common.errors import ValidationError

GRADE_BANDS: tuple[tuple[float, Grade], ...] = (
    (90.0, Grade.A),
    (80.0, Grade.B),
    (70.0, Grade.C),
)


@dataclass(frozen=True)
class Option:
    id: str
    is_correct: bool
    text: str = ""


@dataclass(frozen=True)
class Question:
    id: str
    question_type: QuestionType
    points: int
    options: tuple[Option, ...] = field(default_factory=tuple)

    @property
    def correct_ids(self) -> frozenset[str]:
        return frozenset(o.id for o in self.options if o.is_correct)


@dataclass(frozen=True)
class ScoreResult:
    earned_points: int
    total_points: int
    percentage: float


def _selected(answers: Mapping[str, Sequence[str]], question_id: str) -> list[str]:
    raw = answers.get(question_id) or []
    return [str(a) for a in raw]


def score_question(question: Question, selected: Sequence[str]) -> int:
    if question.question_type in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE):
        picked = set(selected)
        if len(picked) == 1 and next(iter(picked)) in question.correct_ids:
            return question.points
        return 0
    if question.question_type is QuestionType.MULTIPLE_SELECT:
        correct = question.correct_ids
        if correct and set(selected) == correct:
            return question.points
        return 0
    return 0


def score(answers: Mapping[str, Sequence[str]], questions: Iterable[Question]) -> ScoreResult:
    total = 0
    earned = 0
    for q in questions:
        total += q.points
        earned += score_question(q, _selected(answers, q.id))
    percentage = (earned / total * 100.0) if total > 0 else 0.0
    return ScoreResult(earned_points=earned, total_points=total, percentage=percentage)


def grade_for(percentage: float) -> Grade:
    for floor, grade in GRADE_BANDS:
        if percentage >= floor:
            return grade
    return Grade.F


def is_passed(percentage: float, passing_score: float) -> bool:
    return percentage >= passing_score


def validate_question(question_type: QuestionType, points: int, options: Sequence[tuple[str, bool]]) -> None:
    """Raise ``ValidationError`` for a question that cannot be graded.

    ``options`` is a sequence of ``(text, is_correct)`` pairs.
    """
    if points is None or points <= 0:
        raise ValidationError("points must be greater than 0")
    if not question_type.is_choice:
        return
    filled = [(t, c) for t, c in options if t and t.strip()]
    if len(filled) < 2:
        raise ValidationError("choice questions need at least two options")
    if not any(c for _, c in filled):
        raise ValidationError("choice questions need at least one correct option")


def ensure_gradable(questions: Iterable[Question]) -> None:
    for q in questions:
        try:
            validate_question(q.question_type, q.points, [(o.text or o.id, o.is_correct) for o in q.options])
        except ValidationError as exc:
            raise ValidationError(f"question {q.id}: {exc.message}") from exc


def question_from_row(row: Mapping[str, Any]) -> Question:
    """Build a ``Question`` from an ``assessment_questions`` row with embedded
    ``question_options``. Unknown question types are rejected here."""
    qtype = QuestionType.parse(row.get("question_type"))
    opts_raw = row.get("question_options") or []
    opts = sorted(opts_raw, key=lambda o: (o.get("option_order") is None, o.get("option_order") or 0))
    options = tuple(Option(id=str(o["id"]), is_correct=bool(o.get("is_correct")), text=o.get("option_text") or "") for o in opts)
    return Question(id=str(row["id"]), question_type=qtype, points=int(row.get("points") or 0), options=options)


def grade_summary(result: ScoreResult, passing_score: Optional[float]) -> dict[str, Any]:
    threshold = float(passing_score) if passing_score is not None else 70.0
    return {
        "earned_points": result.earned_points,
        "total_points": result.total_points,
        "percentage": result.percentage,
        "grade": grade_for(result.percentage).value,
        "passed": is_passed(result.percentage, threshold),
    }
