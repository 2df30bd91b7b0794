import math

import pytest

from lms.common.enums import Grade, QuestionType
from lms.common.errors import ValidationError
from lms.features.assessments.scoring import (
    Option,
    Question,
    ensure_gradable,
    grade_for,
    grade_summary,
    is_passed,
    question_from_row,
    score,
    score_question,
    validate_question,
)


def _mc(qid="q1", points=2, correct="a"):
    return Question(
        id=qid,
        question_type=QuestionType.MULTIPLE_CHOICE,
        points=points,
        options=tuple(Option(id=o, is_correct=(o == correct), text=o.upper()) for o in ("a", "b", "c")),
    )


def _ms(qid="q2", points=3, correct=("a", "c")):
    return Question(
        id=qid,
        question_type=QuestionType.MULTIPLE_SELECT,
        points=points,
        options=tuple(Option(id=o, is_correct=(o in correct), text=o.upper()) for o in ("a", "b", "c", "d")),
    )


def test_multiple_choice_only_the_single_correct_option_scores():
    q = _mc()
    assert score_question(q, ["a"]) == 2
    assert score_question(q, ["b"]) == 0
    assert score_question(q, ["a", "b"]) == 0
    assert score_question(q, []) == 0


def test_multiple_choice_with_several_correct_options_accepts_any_one():
    q = Question(
        id="q",
        question_type=QuestionType.MULTIPLE_CHOICE,
        points=1,
        options=(Option("a", True), Option("b", True), Option("c", False)),
    )
    assert score_question(q, ["b"]) == 1
    assert score_question(q, ["a", "b"]) == 0


def test_true_false_scores_like_multiple_choice():
    q = Question(id="tf", question_type=QuestionType.TRUE_FALSE, points=1, options=(Option("t", True), Option("f", False)))
    assert score_question(q, ["t"]) == 1
    assert score_question(q, ["f"]) == 0


def test_multiple_select_requires_exact_set():
    q = _ms()
    assert score_question(q, ["c", "a"]) == 3
    assert score_question(q, ["a"]) == 0  # strict subset
    assert score_question(q, ["a", "b", "c"]) == 0  # superset
    assert score_question(q, []) == 0


def test_multiple_select_without_correct_options_never_scores():
    q = Question(id="q", question_type=QuestionType.MULTIPLE_SELECT, points=1, options=(Option("a", False), Option("b", False)))
    assert score_question(q, []) == 0


def test_essay_and_practical_count_toward_total_but_never_earn():
    essay = Question(id="e", question_type=QuestionType.ESSAY, points=5)
    practical = Question(id="p", question_type=QuestionType.PRACTICAL, points=5)
    result = score({"q1": ["a"], "e": ["anything"]}, [_mc(points=10), essay, practical])
    assert result.earned_points == 10
    assert result.total_points == 20
    assert result.percentage == 50.0


def test_percentage_is_zero_when_total_is_zero():
    result = score({}, [])
    assert result.percentage == 0.0
    assert not math.isnan(result.percentage)


def test_score_is_a_pure_function_of_its_inputs():
    questions = [_mc(), _ms()]
    answers = {"q1": ["a"], "q2": ["a"]}
    assert score(answers, questions) == score(answers, questions)


def test_missing_answers_score_zero():
    result = score({}, [_mc(), _ms()])
    assert result.earned_points == 0
    assert result.total_points == 5


@pytest.mark.parametrize(
    "pct,grade",
    [(100, Grade.A), (90, Grade.A), (89.999, Grade.B), (80, Grade.B), (79.999, Grade.C), (70, Grade.C), (69.999, Grade.F), (0, Grade.F)],
)
def test_grade_band_boundaries(pct, grade):
    assert grade_for(pct) is grade


def test_pass_threshold_is_inclusive():
    assert is_passed(70.0, 70)
    assert not is_passed(69.99, 70)


def test_grade_summary_defaults_threshold_to_seventy():
    summary = grade_summary(score({"q1": ["a"]}, [_mc(points=7), _ms(points=3)]), None)
    assert summary == {"earned_points": 7, "total_points": 10, "percentage": 70.0, "grade": "C", "passed": True}


def test_validate_question_rules():
    validate_question(QuestionType.MULTIPLE_CHOICE, 1, [("Yes", True), ("No", False)])
    validate_question(QuestionType.ESSAY, 4, [])
    with pytest.raises(ValidationError):
        validate_question(QuestionType.MULTIPLE_CHOICE, 0, [("Yes", True), ("No", False)])
    with pytest.raises(ValidationError, match="two options"):
        validate_question(QuestionType.MULTIPLE_SELECT, 1, [("Yes", True), ("  ", False)])
    with pytest.raises(ValidationError, match="correct option"):
        validate_question(QuestionType.TRUE_FALSE, 1, [("True", False), ("False", False)])


def test_ensure_gradable_names_the_bad_question():
    broken = Question(id="bad", question_type=QuestionType.MULTIPLE_CHOICE, points=1, options=(Option("a", True),))
    with pytest.raises(ValidationError, match="question bad"):
        ensure_gradable([_mc(), broken])


def test_question_from_row_sorts_embedded_options():
    q = question_from_row(
        {
            "id": 7,
            "question_type": "multiple_choice",
            "points": 2,
            "question_options": [
                {"id": "o2", "option_text": "B", "is_correct": False, "option_order": 2},
                {"id": "o1", "option_text": "A", "is_correct": True, "option_order": 1},
            ],
        }
    )
    assert q.id == "7"
    assert [o.id for o in q.options] == ["o1", "o2"]
    assert q.correct_ids == frozenset({"o1"})


def test_question_from_row_rejects_unknown_type():
    with pytest.raises(ValidationError):
        question_from_row({"id": "x", "question_type": "fill_in_the_blank", "points": 1})
