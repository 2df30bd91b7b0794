from __future__ import annotations

import logging
from typing import Any, Optional

from lms.common.enums import CompletionRule, CourseType, DifficultyLevel, EnrollmentStatus
from lms.common.errors import ConflictError, NotFound, ValidationError
from lms.common.utils import as_float, current_timestamp, format_timestamp, parse_timestamp
from lms.features.auth.permissions import AuthContext, Capability, require

from . import completion, content
from .repository import CourseRepository, course_repository
from .schemas import CourseCreate, CourseUpdate, ModuleCreate, ModuleUpdate

logger = logging.getLogger("courses.service")


def to_requirements(templates: list[dict[str, Any]]) -> list[completion.TemplateRequirement]:
    return [
        completion.TemplateRequirement(
            template_id=str(t["id"]),
            passing_score=as_float(t.get("passing_score"), 70.0),
            is_mandatory=bool(t.get("is_mandatory", True)),
        )
        for t in templates
    ]


def to_records(results: list[dict[str, Any]]) -> list[completion.ResultRecord]:
    return [
        completion.ResultRecord(
            template_id=str(r["assessment_template_id"]),
            percentage=as_float(r.get("percentage")),
            recorded_at=parse_timestamp(r.get("completion_date") or r.get("created_at")),
        )
        for r in results
    ]


def module_out(row: dict[str, Any]) -> dict[str, Any]:
    out = {k: v for k, v in row.items() if k not in ("content_url", "content_path")}
    out["content"] = content.decode(row.get("content_url"), row.get("content_path"))
    return out


class CourseService:
    def __init__(self, repo: CourseRepository = course_repository):
        self.repo = repo

    async def _course(self, course_id: str) -> dict[str, Any]:
        row = await self.repo.get_course(course_id)
        if not row:
            raise NotFound("course_not_found")
        return row

    # --- courses -------------------------------------------------------------
    async def list_courses(
        self,
        ctx: AuthContext,
        course_type: Optional[CourseType] = None,
        difficulty: Optional[DifficultyLevel] = None,
        mandatory: Optional[bool] = None,
    ) -> list[dict[str, Any]]:
        require(ctx, Capability.VIEW_OWN)
        rows = await self.repo.list_courses()
        if course_type is not None:
            rows = [r for r in rows if r.get("course_type") == course_type.value]
        if difficulty is not None:
            rows = [r for r in rows if r.get("difficulty_level") == difficulty.value]
        if mandatory is not None:
            rows = [r for r in rows if bool(r.get("is_mandatory")) is mandatory]
        return rows

    async def get_course(self, ctx: AuthContext, course_id: str) -> dict[str, Any]:
        require(ctx, Capability.VIEW_OWN)
        return await self._course(course_id)

    async def create_course(self, ctx: AuthContext, data: CourseCreate) -> dict[str, Any]:
        require(ctx, Capability.MANAGE_COURSES)
        record = data.model_dump(mode="json")
        record["created_by"] = ctx.user_id
        row = await self.repo.insert_course(record)
        logger.info("courses.created id=%s rule=%s by=%s", row.get("id"), record["completion_rule"], ctx.user_id)
        return row

    async def update_course(self, ctx: AuthContext, course_id: str, data: CourseUpdate) -> dict[str, Any]:
        require(ctx, Capability.MANAGE_COURSES)
        fields = data.model_dump(exclude_unset=True, mode="json")
        if "course_name" in fields:
            name = (fields["course_name"] or "").strip()
            if not name:
                raise ValidationError("course_name_required")
            fields["course_name"] = name
        if not fields:
            return await self._course(course_id)
        row = await self.repo.update_course(course_id, fields)
        if row is None:
            raise NotFound("course_not_found")
        return row

    async def delete_course(self, ctx: AuthContext, course_id: str) -> None:
        require(ctx, Capability.MANAGE_COURSES)
        await self._course(course_id)
        await self.repo.delete_course(course_id)
        logger.info("courses.deleted id=%s by=%s", course_id, ctx.user_id)

    # --- modules -------------------------------------------------------------
    async def list_modules(self, ctx: AuthContext, course_id: str) -> list[dict[str, Any]]:
        require(ctx, Capability.VIEW_OWN)
        return [module_out(m) for m in await self.repo.list_modules(course_id)]

    async def add_module(self, ctx: AuthContext, course_id: str, data: ModuleCreate) -> dict[str, Any]:
        require(ctx, Capability.MANAGE_COURSES)
        await self._course(course_id)
        name = data.module_name.strip()
        if not name:
            raise ValidationError("module_name_required")
        existing = await self.repo.list_modules(course_id)
        next_order = max((int(m.get("module_order") or 0) for m in existing), default=0) + 1
        content_url, content_path = content.encode(data.content)
        row = await self.repo.insert_module(
            {
                "course_id": course_id,
                "module_name": name,
                "module_description": data.module_description,
                "module_order": next_order,
                "content_type": data.content_type,
                "content_url": content_url,
                "content_path": content_path,
                "duration_minutes": data.duration_minutes,
            }
        )
        return module_out(row)

    async def update_module(self, ctx: AuthContext, module_id: str, data: ModuleUpdate) -> dict[str, Any]:
        require(ctx, Capability.MANAGE_COURSES)
        fields = data.model_dump(exclude_unset=True, exclude={"content"}, mode="json")
        if "module_name" in fields:
            name = (fields["module_name"] or "").strip()
            if not name:
                raise ValidationError("module_name_required")
            fields["module_name"] = name
        if data.content is not None:
            fields["content_url"], fields["content_path"] = content.encode(data.content)
        if not fields:
            row = await self.repo.get_module(module_id)
        else:
            row = await self.repo.update_module(module_id, fields)
        if row is None:
            raise NotFound("module_not_found")
        return module_out(row)

    async def _renumber(self, ordered: list[dict[str, Any]]) -> None:
        # two passes so the (course_id, module_order) unique key never collides
        for i, m in enumerate(ordered, start=1):
            await self.repo.update_module(str(m["id"]), {"module_order": -i})
        for i, m in enumerate(ordered, start=1):
            await self.repo.update_module(str(m["id"]), {"module_order": i})

    async def delete_module(self, ctx: AuthContext, module_id: str) -> None:
        require(ctx, Capability.MANAGE_COURSES)
        module = await self.repo.get_module(module_id)
        if not module:
            raise NotFound("module_not_found")
        await self.repo.delete_module(module_id)
        remaining = await self.repo.list_modules(str(module["course_id"]))
        if [int(m["module_order"]) for m in remaining] != list(range(1, len(remaining) + 1)):
            await self._renumber(remaining)

    async def reorder_modules(self, ctx: AuthContext, course_id: str, module_ids: list[str]) -> list[dict[str, Any]]:
        require(ctx, Capability.MANAGE_COURSES)
        current = await self.repo.list_modules(course_id)
        by_id = {str(m["id"]): m for m in current}
        if len(module_ids) != len(by_id) or set(module_ids) != set(by_id):
            raise ValidationError("module_ids must be a permutation of the course's modules")
        await self._renumber([by_id[mid] for mid in module_ids])
        return [module_out(m) for m in await self.repo.list_modules(course_id)]

    # --- enrollment ----------------------------------------------------------
    async def enroll(self, ctx: AuthContext, course_id: str, employee_id: Optional[str] = None) -> dict[str, Any]:
        employee_id = employee_id or ctx.user_id
        if employee_id != ctx.user_id:
            require(ctx, Capability.ASSIGN)
        else:
            require(ctx, Capability.VIEW_OWN, employee_id)
        await self._course(course_id)
        if await self.repo.get_enrollment(course_id, employee_id):
            raise ConflictError("already_enrolled")
        rows = await self.repo.insert_enrollments(
            [
                {
                    "course_id": course_id,
                    "employee_id": employee_id,
                    "status": EnrollmentStatus.ENROLLED.value,
                    "assigned_by": None if employee_id == ctx.user_id else ctx.user_id,
                }
            ]
        )
        if not rows:
            raise ConflictError("already_enrolled")
        logger.info("courses.enrolled course_id=%s employee_id=%s by=%s", course_id, employee_id, ctx.user_id)
        return rows[0]

    async def assign_course(self, ctx: AuthContext, course_id: str, employee_ids: list[str]) -> tuple[list[str], list[str]]:
        """Bulk-enroll; employees already enrolled are skipped, not errors."""
        require(ctx, Capability.ASSIGN)
        await self._course(course_id)
        already = {str(e["employee_id"]) for e in await self.repo.list_enrollments_for_course(course_id)}
        wanted: list[str] = []
        for eid in employee_ids:
            if eid not in wanted:
                wanted.append(eid)
        to_add = [eid for eid in wanted if eid not in already]
        skipped = [eid for eid in wanted if eid in already]
        await self.repo.insert_enrollments(
            [
                {
                    "course_id": course_id,
                    "employee_id": eid,
                    "status": EnrollmentStatus.ENROLLED.value,
                    "assigned_by": ctx.user_id,
                }
                for eid in to_add
            ]
        )
        logger.info("courses.assigned course_id=%s added=%d skipped=%d", course_id, len(to_add), len(skipped))
        return to_add, skipped

    async def list_my_enrollments(self, ctx: AuthContext) -> list[dict[str, Any]]:
        require(ctx, Capability.VIEW_OWN)
        return await self.repo.list_enrollments_for_employee(ctx.user_id)

    async def list_enrollments(self, ctx: AuthContext, course_id: str) -> list[dict[str, Any]]:
        require(ctx, Capability.ASSIGN)
        return await self.repo.list_enrollments_for_course(course_id)

    # --- completion ----------------------------------------------------------
    async def _inputs(self, course_id: str, employee_id: str):
        course = await self._course(course_id)
        template_rows = await self.repo.list_templates(course_id)
        results = to_records(await self.repo.list_results(course_id, employee_id))
        return course, template_rows, to_requirements(template_rows), results

    async def evaluate_completion(self, course_id: str, employee_id: str) -> bool:
        """Apply the course's rule and move the enrollment to ``completed`` once.

        Runs after every recorded result. Returns whether the course is
        complete for the employee; an employee with no enrollment row is
        never transitioned.
        """
        enrollment = await self.repo.get_enrollment(course_id, employee_id)
        if enrollment is None:
            logger.info("courses.completion_skipped course_id=%s employee_id=%s reason=not_enrolled", course_id, employee_id)
            return False
        if EnrollmentStatus.try_parse(enrollment.get("status")) is EnrollmentStatus.COMPLETED:
            return True
        course, _, templates, results = await self._inputs(course_id, employee_id)
        done = completion.is_complete(
            course.get("completion_rule"),
            templates,
            results,
            minimum_passing_percentage=course.get("minimum_passing_percentage"),
            enrollment_status=enrollment.get("status"),
        )
        if done:
            await self.repo.mark_enrollment_completed(str(enrollment["id"]), format_timestamp(current_timestamp()))
            logger.info("courses.completed course_id=%s employee_id=%s rule=%s", course_id, employee_id, course.get("completion_rule"))
        return done

    async def mark_complete(self, ctx: AuthContext, course_id: str, employee_id: Optional[str] = None) -> dict[str, Any]:
        """Manual completion; the only path for a course without assessments."""
        employee_id = employee_id or ctx.user_id
        if employee_id != ctx.user_id:
            require(ctx, Capability.ASSIGN)
        else:
            require(ctx, Capability.VIEW_OWN, employee_id)
        enrollment = await self.repo.get_enrollment(course_id, employee_id)
        if enrollment is None:
            raise NotFound("enrollment_not_found")
        if EnrollmentStatus.try_parse(enrollment.get("status")) is EnrollmentStatus.COMPLETED:
            return enrollment
        course, _, templates, results = await self._inputs(course_id, employee_id)
        if templates and not completion.is_complete(
            course.get("completion_rule"),
            templates,
            results,
            minimum_passing_percentage=course.get("minimum_passing_percentage"),
        ):
            raise ValidationError("completion_requirements_not_met")
        row = await self.repo.mark_enrollment_completed(str(enrollment["id"]), format_timestamp(current_timestamp()))
        logger.info("courses.marked_complete course_id=%s employee_id=%s by=%s", course_id, employee_id, ctx.user_id)
        return row or await self.repo.get_enrollment(course_id, employee_id) or enrollment

    async def course_progress(self, ctx: AuthContext, course_id: str, employee_id: Optional[str] = None) -> dict[str, Any]:
        employee_id = employee_id or ctx.user_id
        if employee_id != ctx.user_id:
            require(ctx, Capability.ASSIGN)
        else:
            require(ctx, Capability.VIEW_OWN, employee_id)
        course, rows, templates, results = await self._inputs(course_id, employee_id)
        template_rows = {str(t["id"]): t for t in rows}
        enrollment = await self.repo.get_enrollment(course_id, employee_id)
        status = enrollment.get("status") if enrollment else None
        rule = CompletionRule.try_parse(course.get("completion_rule")) or CompletionRule.PASS_ALL_ASSESSMENTS
        standings = completion.standings(templates, results)
        return {
            "course_id": course_id,
            "employee_id": employee_id,
            "status": status,
            "completion_rule": rule.value,
            "rule_description": completion.describe_rule(rule, course.get("minimum_passing_percentage")),
            "templates_total": len(templates),
            "templates_passed": sum(1 for s in standings if s.passed),
            "is_complete": completion.is_complete(
                rule,
                templates,
                results,
                minimum_passing_percentage=course.get("minimum_passing_percentage"),
                enrollment_status=status,
            ),
            "templates": [
                {
                    "template_id": s.template_id,
                    "title": template_rows.get(s.template_id, {}).get("title"),
                    "is_mandatory": t.is_mandatory,
                    "passing_score": t.passing_score,
                    "attempts": s.attempts,
                    "best_percentage": s.best_percentage,
                    "latest_percentage": s.latest_percentage,
                    "passed": s.passed,
                }
                for s, t in zip(standings, templates)
            ],
        }


course_service = CourseService()
