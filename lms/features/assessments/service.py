from __future__ import annotations

import logging
from typing import Any, Optional

from lms.common.enums import AssessmentType, QuestionType, ResultStatus
from lms.common.errors import ConflictError, NotFound, PermissionDenied, StoreError, ValidationError
from lms.common.utils import current_timestamp, format_timestamp
from lms.core.config import get_settings
from lms.features.auth.permissions import AuthContext, Capability, require
from lms.features.courses import completion
from lms.features.courses.repository import CourseRepository, course_repository
from lms.features.courses.service import CourseService, course_service, to_records, to_requirements

from . import scoring
from .repository import AssessmentRepository, assessment_repository
from .schemas import QuestionIn, TemplateCreate, TemplateUpdate
from .timer import OPEN, AttemptRegistry, AttemptSession, AttemptTimer, attempt_registry

logger = logging.getLogger("assessments.service")


def _clean_options(question_type: QuestionType, options: list) -> list[dict[str, Any]]:
    if not question_type.is_choice:
        return []
    kept = [o for o in options if (o.option_text or "").strip()]
    return [
        {"option_text": o.option_text.strip(), "is_correct": bool(o.is_correct), "option_order": i}
        for i, o in enumerate(kept, start=1)
    ]


def question_out(row: dict[str, Any], include_answers: bool) -> dict[str, Any]:
    opts = sorted(row.get("question_options") or [], key=lambda o: o.get("option_order") or 0)
    return {
        "id": str(row["id"]),
        "question_text": row.get("question_text") or "",
        "question_type": row.get("question_type"),
        "points": int(row.get("points") or 0),
        "question_order": int(row.get("question_order") or 0),
        "explanation": row.get("explanation") if include_answers else None,
        "options": [
            {
                "id": str(o["id"]),
                "option_text": o.get("option_text") or "",
                "option_order": int(o.get("option_order") or 0),
                "is_correct": bool(o.get("is_correct")) if include_answers else None,
            }
            for o in opts
        ],
    }


class AssessmentService:
    def __init__(
        self,
        repo: AssessmentRepository = assessment_repository,
        courses: CourseRepository = course_repository,
        completion_service: CourseService = course_service,
        registry: AttemptRegistry = attempt_registry,
    ):
        self.repo = repo
        self.courses = courses
        self.completion_service = completion_service
        self.registry = registry

    async def _template(self, template_id: str) -> dict[str, Any]:
        row = await self.repo.get_template(template_id)
        if not row:
            raise NotFound("assessment_not_found")
        return row

    # --- templates -----------------------------------------------------------
    async def list_templates(self, ctx: AuthContext, course_id: str) -> list[dict[str, Any]]:
        require(ctx, Capability.VIEW_OWN)
        return await self.repo.list_templates(course_id)

    async def get_template(self, ctx: AuthContext, template_id: str) -> dict[str, Any]:
        require(ctx, Capability.VIEW_OWN)
        row = await self._template(template_id)
        return {**row, "question_count": len(await self.repo.list_questions(template_id))}

    async def create_template(self, ctx: AuthContext, course_id: str, data: TemplateCreate) -> dict[str, Any]:
        require(ctx, Capability.MANAGE_COURSES)
        if not await self.courses.get_course(course_id):
            raise NotFound("course_not_found")
        title = data.title.strip()
        if not title:
            raise ValidationError("title_required")
        record = data.model_dump(mode="json")
        record.update({"title": title, "course_id": course_id, "created_by": ctx.user_id})
        row = await self.repo.insert_template(record)
        logger.info("assessments.template_created id=%s course_id=%s type=%s", row.get("id"), course_id, record["assessment_type"])
        return row

    async def update_template(self, ctx: AuthContext, template_id: str, data: TemplateUpdate) -> dict[str, Any]:
        require(ctx, Capability.MANAGE_COURSES)
        fields = data.model_dump(exclude_unset=True, mode="json")
        if "title" in fields:
            title = (fields["title"] or "").strip()
            if not title:
                raise ValidationError("title_required")
            fields["title"] = title
        row = await self.repo.update_template(template_id, fields) if fields else await self.repo.get_template(template_id)
        if row is None:
            raise NotFound("assessment_not_found")
        if AssessmentType.try_parse(row.get("assessment_type")) is AssessmentType.QUIZ:
            if not await self.repo.list_questions(template_id):
                logger.warning("assessments.quiz_without_questions id=%s", template_id)
        return row

    async def delete_template(self, ctx: AuthContext, template_id: str) -> None:
        require(ctx, Capability.MANAGE_COURSES)
        await self._template(template_id)
        await self.repo.delete_template(template_id)
        logger.info("assessments.template_deleted id=%s by=%s", template_id, ctx.user_id)

    # --- questions -----------------------------------------------------------
    async def list_questions(self, ctx: AuthContext, template_id: str) -> list[dict[str, Any]]:
        """Correct answers are only exposed to course managers."""
        require(ctx, Capability.VIEW_OWN)
        include_answers = ctx.can(Capability.MANAGE_COURSES)
        return [question_out(q, include_answers) for q in await self.repo.list_questions(template_id)]

    @staticmethod
    def _validate(data: QuestionIn) -> list[dict[str, Any]]:
        if not data.question_text.strip():
            raise ValidationError("question_text_required")
        scoring.validate_question(data.question_type, data.points, [(o.option_text, o.is_correct) for o in data.options])
        return _clean_options(data.question_type, data.options)

    async def add_question(self, ctx: AuthContext, template_id: str, data: QuestionIn) -> dict[str, Any]:
        require(ctx, Capability.MANAGE_COURSES)
        options = self._validate(data)
        await self._template(template_id)
        existing = await self.repo.list_questions(template_id)
        row = await self.repo.insert_question(
            {
                "assessment_template_id": template_id,
                "question_text": data.question_text.strip(),
                "question_type": data.question_type.value,
                "points": data.points,
                "explanation": data.explanation,
                "question_order": len(existing) + 1,
            }
        )
        try:
            row["question_options"] = await self.repo.insert_options(str(row["id"]), options)
        except StoreError:
            # an optionless choice question would block every attempt on the template
            logger.error("assessments.question_options_failed question_id=%s; removing question", row["id"])
            await self.repo.delete_question(str(row["id"]))
            raise
        return question_out(row, include_answers=True)

    async def update_question(self, ctx: AuthContext, question_id: str, data: QuestionIn) -> dict[str, Any]:
        """Options are replaced wholesale and renumbered from 1."""
        require(ctx, Capability.MANAGE_COURSES)
        options = self._validate(data)
        previous = await self.repo.get_question(question_id)
        if previous is None:
            raise NotFound("question_not_found")
        fields = ("question_text", "question_type", "points", "explanation")
        row = await self.repo.update_question(
            question_id,
            {
                "question_text": data.question_text.strip(),
                "question_type": data.question_type.value,
                "points": data.points,
                "explanation": data.explanation,
            },
        )
        if row is None:
            raise NotFound("question_not_found")
        try:
            row["question_options"] = await self.repo.replace_options(question_id, options)
        except StoreError:
            logger.error("assessments.question_options_failed question_id=%s; restoring question", question_id)
            await self.repo.update_question(question_id, {k: previous.get(k) for k in fields})
            raise
        return question_out(row, include_answers=True)

    async def delete_question(self, ctx: AuthContext, question_id: str) -> None:
        require(ctx, Capability.MANAGE_COURSES)
        if not await self.repo.get_question(question_id):
            raise NotFound("question_not_found")
        await self.repo.delete_question(question_id)

    # --- attempts ------------------------------------------------------------
    def _session_for(self, ctx: AuthContext, attempt_id: str) -> AttemptSession:
        owner = self.registry.finished_owner(attempt_id)
        if owner is not None:
            if owner != ctx.user_id:
                raise PermissionDenied("attempt_belongs_to_another_employee")
            raise ConflictError("attempt_already_submitted")
        session = self.registry.get(attempt_id)
        if session.employee_id != ctx.user_id:
            raise PermissionDenied("attempt_belongs_to_another_employee")
        return session

    async def start_attempt(self, ctx: AuthContext, template_id: str) -> tuple[AttemptSession, list[dict[str, Any]]]:
        """Open an attempt and start its countdown; an unfinished attempt on the
        same template is resumed instead."""
        require(ctx, Capability.TAKE_ASSESSMENTS)
        template = await self._template(template_id)
        rows = await self.repo.list_questions(template_id)
        if not rows:
            raise ValidationError("assessment_has_no_questions")
        questions = [scoring.question_from_row(r) for r in rows]
        scoring.ensure_gradable(questions)
        shown = [question_out(r, include_answers=False) for r in rows]

        active = self.registry.active_for(ctx.user_id, template_id)
        if active is not None and active.state == OPEN and not (active.timer and active.timer.expired):
            return active, shown

        session = self.registry.open(ctx.user_id, template, questions)
        minutes = template.get("time_limit_minutes") or get_settings().default_time_limit_minutes
        session.timer = AttemptTimer(int(minutes) * 60, lambda: self.expire(session.attempt_id))
        session.timer.start()
        logger.info(
            "assessment.started attempt_id=%s employee_id=%s template_id=%s limit_s=%d",
            session.attempt_id,
            ctx.user_id,
            template_id,
            int(minutes) * 60,
        )
        return session, shown

    def save_answers(self, ctx: AuthContext, attempt_id: str, answers: dict[str, list[str]]) -> AttemptSession:
        session = self._session_for(ctx, attempt_id)
        session.save_answers(answers)
        return session

    def attempt_state(self, ctx: AuthContext, attempt_id: str) -> AttemptSession:
        return self._session_for(ctx, attempt_id)

    def abandon_attempt(self, ctx: AuthContext, attempt_id: str) -> None:
        self._session_for(ctx, attempt_id)
        self.registry.discard(attempt_id)

    async def submit_attempt(
        self, ctx: AuthContext, attempt_id: str, answers: Optional[dict[str, list[str]]] = None
    ) -> dict[str, Any]:
        require(ctx, Capability.TAKE_ASSESSMENTS)
        session = self._session_for(ctx, attempt_id)
        if answers is not None and session.state == OPEN:
            session.save_answers(answers)
        return await self._submit(session, auto=False)

    async def expire(self, attempt_id: str) -> Optional[dict[str, Any]]:
        """Timer callback: submit whatever answers are present."""
        try:
            session = self.registry.get(attempt_id)
        except NotFound:
            return None
        if session.state != OPEN:
            return None
        try:
            return await self._submit(session, auto=True)
        except ConflictError:
            return None
        except StoreError as exc:
            logger.error("assessment.auto_submit_failed attempt_id=%s error=%s", attempt_id, exc.message)
            return None

    async def _submit(self, session: AttemptSession, auto: bool) -> dict[str, Any]:
        answers = session.begin_submit()
        template = session.template
        try:
            result = scoring.score(answers, session.questions)
            passing = template.get("passing_score")
            summary = scoring.grade_summary(result, passing)
            now = format_timestamp(current_timestamp())
            row = await self.repo.insert_result(
                {
                    "employee_id": session.employee_id,
                    "course_id": session.course_id,
                    "assessment_template_id": session.template_id,
                    "assessment_type": template.get("assessment_type"),
                    "total_score": result.earned_points,
                    "percentage": result.percentage,
                    "passing_score": passing,
                    "is_mandatory": template.get("is_mandatory"),
                    "grade": summary["grade"],
                    "status": ResultStatus.COMPLETED.value,
                    "completion_date": now,
                }
            )
        except Exception:
            session.fail_submit()
            raise

        out = {
            **summary,
            "id": str(row.get("id")) if row.get("id") is not None else None,
            "attempt_id": session.attempt_id,
            "template_id": session.template_id,
            "course_id": session.course_id,
            "auto_submitted": auto,
            "course_completed": False,
        }
        session.finish_submit(out)
        self.registry.finish(session.attempt_id)
        logger.info(
            "assessment.submitted attempt_id=%s employee_id=%s template_id=%s pct=%.2f grade=%s passed=%s auto=%s",
            session.attempt_id,
            session.employee_id,
            session.template_id,
            result.percentage,
            summary["grade"],
            summary["passed"],
            auto,
        )
        try:
            out["course_completed"] = await self.completion_service.evaluate_completion(session.course_id, session.employee_id)
        except StoreError as exc:
            # the result row is stored; completion is re-evaluated on the next result
            logger.error("assessment.completion_check_failed course_id=%s error=%s", session.course_id, exc.message)
        return out

    # --- history -------------------------------------------------------------
    async def list_results(
        self, ctx: AuthContext, employee_id: Optional[str] = None, template_id: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """Full attempt history, newest first."""
        employee_id = employee_id or ctx.user_id
        require(ctx, Capability.ASSIGN, employee_id)
        return await self.repo.list_results(employee_id, template_id)

    async def standing(self, ctx: AuthContext, course_id: str, employee_id: Optional[str] = None) -> list[dict[str, Any]]:
        employee_id = employee_id or ctx.user_id
        require(ctx, Capability.ASSIGN, employee_id)
        template_rows = await self.repo.list_templates(course_id)
        results = [r for r in await self.repo.list_results(employee_id) if str(r.get("course_id")) == str(course_id)]
        results = [r for r in results if r.get("status") == ResultStatus.COMPLETED.value]
        titles = {str(t["id"]): t.get("title") for t in template_rows}
        return [
            {
                "template_id": s.template_id,
                "title": titles.get(s.template_id),
                "attempts": s.attempts,
                "best_percentage": s.best_percentage,
                "latest_percentage": s.latest_percentage,
                "passed": s.passed,
            }
            for s in completion.standings(to_requirements(template_rows), to_records(results))
        ]


assessment_service = AssessmentService()
