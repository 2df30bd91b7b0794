from datetime import datetime, timedelta, timezone

from lms.common.enums import CompletionRule
from lms.features.courses.completion import (
    ResultRecord,
    TemplateRequirement,
    describe_rule,
    is_complete,
    standings,
)

T0 = datetime(2026, 3, 1, tzinfo=timezone.utc)


def _templates(*specs):
    return [TemplateRequirement(template_id=tid, passing_score=70, is_mandatory=mandatory) for tid, mandatory in specs]


def _result(tid, pct, minutes=0):
    return ResultRecord(template_id=tid, percentage=pct, recorded_at=T0 + timedelta(minutes=minutes))


def test_pass_all_needs_a_passing_result_for_every_template():
    templates = _templates(("a", True), ("b", True), ("c", True))
    results = [_result("a", 40), _result("a", 85), _result("b", 70), _result("c", 10), _result("c", 90)]
    assert is_complete(CompletionRule.PASS_ALL_ASSESSMENTS, templates, results)


def test_pass_all_incomplete_when_one_template_never_passed():
    templates = _templates(("a", True), ("b", True), ("c", True))
    results = [_result("a", 85), _result("b", 70), _result("c", 69.9)]
    assert not is_complete("pass_all_assessments", templates, results)


def test_failed_retake_after_a_pass_does_not_block():
    templates = _templates(("a", True))
    results = [_result("a", 90, 0), _result("a", 20, 5)]
    assert is_complete("pass_all_assessments", templates, results)


def test_minimum_percentage_uses_mean_of_best_per_template():
    templates = _templates(("a", True), ("b", True))
    assert not is_complete("pass_minimum_percentage", templates, [_result("a", 80), _result("b", 60)], 75)
    assert is_complete("pass_minimum_percentage", templates, [_result("a", 80), _result("b", 70)], 75)
    assert is_complete(
        "pass_minimum_percentage", templates, [_result("a", 80), _result("b", 40), _result("b", 70)], 75
    )


def test_minimum_percentage_counts_unattempted_templates_as_zero():
    templates = _templates(("a", True), ("b", True))
    assert not is_complete("pass_minimum_percentage", templates, [_result("a", 100)], 75)
    assert is_complete("pass_minimum_percentage", templates, [_result("a", 100)], 50)


def test_mandatory_only_ignores_optional_templates():
    templates = _templates(("a", True), ("b", False))
    assert is_complete("pass_mandatory_only", templates, [_result("a", 75)])
    assert not is_complete("pass_mandatory_only", templates, [_result("b", 100)])


def test_unknown_rule_behaves_like_pass_all():
    templates = _templates(("a", True), ("b", False))
    assert not is_complete("whatever", templates, [_result("a", 75)])
    assert is_complete(None, templates, [_result("a", 75), _result("b", 70)])


def test_course_without_templates_never_completes_automatically():
    assert not is_complete("pass_all_assessments", [], [])
    assert not is_complete("pass_minimum_percentage", [], [], 0)


def test_completed_enrollment_stays_completed():
    templates = _templates(("a", True))
    assert is_complete("pass_all_assessments", templates, [], enrollment_status="completed")


def test_standings_report_best_and_latest():
    templates = _templates(("a", True), ("b", True))
    results = [_result("a", 90, 0), _result("a", 50, 10), _result("a", 60, 5)]
    a, b = standings(templates, results)
    assert (a.attempts, a.best_percentage, a.latest_percentage, a.passed) == (3, 90, 50, True)
    assert (b.attempts, b.best_percentage, b.latest_percentage, b.passed) == (0, None, None, False)


def test_describe_rule():
    assert describe_rule("pass_all_assessments") == "Pass all assessments to complete"
    assert describe_rule("pass_minimum_percentage", 75) == "Average 75% across assessments to complete"
    assert describe_rule("pass_minimum_percentage") == "Average 70% across assessments to complete"
    assert describe_rule("pass_mandatory_only") == "Pass all mandatory assessments to complete"
