"""Course completion rules.

Pure functions over the course's assessment templates and the employee's
result history; the service layer loads the rows and applies the
enrollment transition.

Rules (``courses.completion_rule``):
    - pass_all_assessments: every template has at least one result at or
      above that template's passing score. Failed attempts never block.
    - pass_minimum_percentage: mean of the best percentage per template
      (0 for a template never attempted) reaches the course minimum.
    - pass_mandatory_only: every mandatory template has a passing result;
      optional templates are ignored.
    - anything else is evaluated as pass_all_assessments.

A course without templates is never completed here; the manual
mark-complete action is its only path.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from lms.common.enums import CompletionRule, EnrollmentStatus

DEFAULT_MINIMUM_PERCENTAGE = 70.0


@dataclass(frozen=True)
class TemplateRequirement:
    template_id: str
    passing_score: float
    is_mandatory: bool = True


@dataclass(frozen=True)
class ResultRecord:
    template_id: str
    percentage: float
    recorded_at: Optional[datetime] = None


@dataclass(frozen=True)
class TemplateStanding:
    template_id: str
    attempts: int
    best_percentage: Optional[float]
    latest_percentage: Optional[float]
    passed: bool


def _rule(value: object) -> CompletionRule:
    return CompletionRule.try_parse(value) or CompletionRule.PASS_ALL_ASSESSMENTS


def _by_template(results: Iterable[ResultRecord]) -> dict[str, list[ResultRecord]]:
    grouped: dict[str, list[ResultRecord]] = {}
    for r in results:
        grouped.setdefault(str(r.template_id), []).append(r)
    return grouped


def best_percentages(results: Iterable[ResultRecord]) -> dict[str, float]:
    return {tid: max(r.percentage for r in rs) for tid, rs in _by_template(results).items()}


def has_passing_result(template: TemplateRequirement, results: Iterable[ResultRecord]) -> bool:
    return any(r.percentage >= template.passing_score for r in results if str(r.template_id) == template.template_id)


def standings(templates: Iterable[TemplateRequirement], results: Iterable[ResultRecord]) -> list[TemplateStanding]:
    """Best and most recent result per template, in template order.

    Results without a timestamp sort before timestamped ones; among equals
    the later position in ``results`` is the more recent.
    """
    grouped = _by_template(results)
    out = []
    for t in templates:
        rs = grouped.get(t.template_id, [])
        latest = None
        if rs:
            ordered = sorted(enumerate(rs), key=lambda p: (p[1].recorded_at is not None, p[1].recorded_at or datetime.min, p[0]))
            latest = ordered[-1][1].percentage
        out.append(
            TemplateStanding(
                template_id=t.template_id,
                attempts=len(rs),
                best_percentage=max((r.percentage for r in rs), default=None),
                latest_percentage=latest,
                passed=any(r.percentage >= t.passing_score for r in rs),
            )
        )
    return out


def is_complete(
    rule: object,
    templates: list[TemplateRequirement],
    results: list[ResultRecord],
    minimum_passing_percentage: Optional[float] = None,
    enrollment_status: object = None,
) -> bool:
    if EnrollmentStatus.try_parse(enrollment_status) is EnrollmentStatus.COMPLETED:
        return True
    if not templates:
        return False

    selected = _rule(rule)
    if selected is CompletionRule.PASS_MINIMUM_PERCENTAGE:
        minimum = DEFAULT_MINIMUM_PERCENTAGE if minimum_passing_percentage is None else float(minimum_passing_percentage)
        best = best_percentages(results)
        mean = sum(best.get(t.template_id, 0.0) for t in templates) / len(templates)
        return mean >= minimum
    if selected is CompletionRule.PASS_MANDATORY_ONLY:
        return all(has_passing_result(t, results) for t in templates if t.is_mandatory)
    return all(has_passing_result(t, results) for t in templates)


def describe_rule(rule: object, minimum_passing_percentage: Optional[float] = None) -> str:
    selected = _rule(rule)
    if selected is CompletionRule.PASS_MINIMUM_PERCENTAGE:
        minimum = DEFAULT_MINIMUM_PERCENTAGE if minimum_passing_percentage is None else float(minimum_passing_percentage)
        return f"Average {minimum:g}% across assessments to complete"
    if selected is CompletionRule.PASS_MANDATORY_ONLY:
        return "Pass all mandatory assessments to complete"
    return "Pass all assessments to complete"
