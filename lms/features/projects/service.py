from __future__ import annotations

import logging
import os
import time
from collections import Counter
from typing import Any, Optional

from lms.common.enums import AssignmentStatus, RoleName
from lms.common.errors import ConflictError, NotFound, PermissionDenied, ValidationError
from lms.core.config import get_settings
from lms.db import storage
from lms.features.auth.permissions import AuthContext, Capability, require

from . import evaluation
from .repository import ProjectRepository, project_repository
from .schemas import EvaluationIn, ProjectCreate, ProjectUpdate

logger = logging.getLogger("projects.service")


def submission_path(employee_id: str, assignment_id: str, filename: str, now_ms: Optional[int] = None) -> str:
    ext = os.path.splitext(os.path.basename(filename or ""))[1].lstrip(".")
    ts = now_ms if now_ms is not None else int(time.time() * 1000)
    name = f"{employee_id}-{assignment_id}-{ts}"
    return f"project-submissions/{name}.{ext}" if ext else f"project-submissions/{name}"


def _is_link(value: Optional[str]) -> bool:
    return bool(value) and value.lower().startswith(("http://", "https://"))


class ProjectService:
    def __init__(self, repo: ProjectRepository = project_repository):
        self.repo = repo
        # submission ids with an evaluation write in flight
        self._evaluating: set[str] = set()

    async def _project(self, project_id: str) -> dict[str, Any]:
        row = await self.repo.get_project(project_id)
        if not row:
            raise NotFound("project_not_found")
        return row

    async def _assignment(self, assignment_id: str) -> dict[str, Any]:
        row = await self.repo.get_assignment(assignment_id)
        if not row:
            raise NotFound("assignment_not_found")
        return row

    # --- projects ------------------------------------------------------------
    async def list_projects(self, ctx: AuthContext) -> list[dict[str, Any]]:
        """All projects with their assignment counts."""
        require(ctx, Capability.ASSIGN)
        projects = await self.repo.list_projects()
        counts = Counter(str(a["project_id"]) for a in await self.repo.list_assignments())
        return [{**p, "assignment_count": counts.get(str(p["id"]), 0)} for p in projects]

    async def get_project(self, ctx: AuthContext, project_id: str) -> dict[str, Any]:
        require(ctx, Capability.VIEW_OWN)
        return await self._project(project_id)

    async def create_project(self, ctx: AuthContext, data: ProjectCreate) -> dict[str, Any]:
        require(ctx, Capability.ASSIGN)
        name = data.project_name.strip()
        if not name:
            raise ValidationError("project_name_required")
        record = data.model_dump(mode="json")
        record.update({"project_name": name, "created_by": ctx.user_id})
        row = await self.repo.insert_project(record)
        logger.info("projects.created id=%s by=%s", row.get("id"), ctx.user_id)
        return row

    async def update_project(self, ctx: AuthContext, project_id: str, data: ProjectUpdate) -> dict[str, Any]:
        require(ctx, Capability.ASSIGN)
        fields = data.model_dump(exclude_unset=True, mode="json")
        if "project_name" in fields:
            name = (fields["project_name"] or "").strip()
            if not name:
                raise ValidationError("project_name_required")
            fields["project_name"] = name
        row = await self.repo.update_project(project_id, fields) if fields else await self.repo.get_project(project_id)
        if row is None:
            raise NotFound("project_not_found")
        return row

    async def delete_project(self, ctx: AuthContext, project_id: str) -> None:
        require(ctx, Capability.ASSIGN)
        await self._project(project_id)
        await self.repo.delete_project(project_id)
        logger.info("projects.deleted id=%s by=%s", project_id, ctx.user_id)

    # --- assignments ---------------------------------------------------------
    async def assign_project(
        self, ctx: AuthContext, project_id: str, trainee_ids: list[str]
    ) -> tuple[list[dict[str, Any]], list[str]]:
        """Create one assignment per trainee; already assigned trainees are skipped."""
        require(ctx, Capability.ASSIGN)
        await self._project(project_id)
        existing = {str(a["assignee_id"]) for a in await self.repo.list_assignments(project_id=project_id)}
        wanted = list(dict.fromkeys(str(t) for t in trainee_ids if t))
        skipped = [t for t in wanted if t in existing]
        records = [
            {
                "project_id": project_id,
                "assignee_id": t,
                "assigned_by": ctx.user_id,
                "status": AssignmentStatus.ASSIGNED.value,
            }
            for t in wanted
            if t not in existing
        ]
        created = await self.repo.insert_assignments(records)
        logger.info(
            "projects.assigned project_id=%s created=%d skipped=%d by=%s", project_id, len(created), len(skipped), ctx.user_id
        )
        return created, skipped

    async def list_assignments(self, ctx: AuthContext, project_id: str) -> list[dict[str, Any]]:
        require(ctx, Capability.ASSIGN)
        return await self.repo.list_assignments(project_id=project_id)

    async def list_my_assignments(self, ctx: AuthContext) -> list[dict[str, Any]]:
        require(ctx, Capability.VIEW_OWN)
        rows = await self.repo.list_assignments(assignee_id=ctx.user_id)
        projects = {str(p["id"]): p for p in await self.repo.list_projects_by_ids([str(r["project_id"]) for r in rows])}
        return [{**r, "project": projects.get(str(r["project_id"]))} for r in rows]

    async def assignment_detail(self, ctx: AuthContext, assignment_id: str) -> dict[str, Any]:
        """Assignment with its submissions (oldest first) and their evaluations."""
        assignment = await self._assignment(assignment_id)
        require(ctx, Capability.ASSIGN, str(assignment["assignee_id"]))
        project = await self.repo.get_project(str(assignment["project_id"]))
        submissions = await self.repo.list_submissions(assignment_id)
        evaluations = await self.repo.list_evaluations([str(s["id"]) for s in submissions])
        return {
            "assignment": {**assignment, "project": project},
            "submissions": submissions,
            "evaluations": evaluations,
        }

    # --- submissions ---------------------------------------------------------
    async def submit_work(
        self,
        ctx: AuthContext,
        assignment_id: str,
        link: Optional[str] = None,
        comments: Optional[str] = None,
        filename: Optional[str] = None,
        data: Optional[bytes] = None,
        content_type: Optional[str] = None,
    ) -> dict[str, Any]:
        """Append a submission. A link takes precedence over a file."""
        assignment = await self._assignment(assignment_id)
        if ctx.role is not RoleName.TRAINEE or not ctx.is_own_record(assignment["assignee_id"]):
            raise PermissionDenied("not_assignment_owner")
        link = (link or "").strip() or None
        if not link and not data:
            raise ValidationError("link_or_file_required")

        file_url = link
        if not link:
            path = submission_path(ctx.user_id, assignment_id, filename or "")
            file_url = await storage.upload_object(get_settings().submissions_bucket, path, data, content_type=content_type)

        row = await self.repo.insert_submission(
            {
                "assignment_id": assignment_id,
                "submitted_by": ctx.user_id,
                "submission_content": comments,
                "file_url": file_url,
            }
        )
        if assignment.get("status") != AssignmentStatus.EVALUATED.value:
            await self.repo.set_assignment_status(assignment_id, AssignmentStatus.SUBMITTED.value)
        logger.info(
            "projects.submitted assignment_id=%s submission_id=%s employee_id=%s kind=%s",
            assignment_id,
            row.get("id"),
            ctx.user_id,
            "link" if link else "file",
        )
        return row

    async def submission_download_url(self, ctx: AuthContext, submission_id: str) -> tuple[str, int]:
        submission = await self.repo.get_submission(submission_id)
        if not submission:
            raise NotFound("submission_not_found")
        require(ctx, Capability.ASSIGN, str(submission["submitted_by"]))
        file_url = submission.get("file_url")
        if not file_url:
            raise NotFound("submission_has_no_file")
        ttl = get_settings().signed_url_ttl_seconds
        if _is_link(file_url):
            return file_url, ttl
        url = await storage.create_signed_url(get_settings().submissions_bucket, file_url, ttl)
        return url, ttl

    # --- evaluations ---------------------------------------------------------
    async def evaluate_submission(self, ctx: AuthContext, submission_id: str, data: EvaluationIn) -> dict[str, Any]:
        """Record the one evaluation a submission can have and close the assignment.

        A second evaluation for the same submission is rejected, including one
        racing an in-flight write in this process.
        """
        require(ctx, Capability.EVALUATE_PROJECTS)
        strengths = (data.strengths or "").strip()
        areas = (data.areas_for_improvement or "").strip()
        if not strengths or not areas:
            raise ValidationError("feedback_required")
        if submission_id in self._evaluating:
            raise ConflictError("evaluation_in_progress")
        self._evaluating.add(submission_id)
        try:
            submission = await self.repo.get_submission(submission_id)
            if not submission:
                raise NotFound("submission_not_found")
            if str(submission["submitted_by"]) == ctx.user_id:
                raise PermissionDenied("cannot_evaluate_own_submission")
            if await self.repo.get_evaluation_for_submission(submission_id):
                raise ConflictError("submission_already_evaluated")
            assignment = await self._assignment(str(submission["assignment_id"]))

            scores = evaluation.EvaluationScores(
                technical=data.technical_score,
                quality=data.quality_score,
                timeline=data.timeline_score,
                communication=data.communication_score,
                innovation=data.innovation_score,
            )
            overall = evaluation.aggregate(scores)
            row = await self.repo.insert_evaluation(
                {
                    **evaluation.to_columns(scores),
                    "submission_id": submission_id,
                    "project_id": str(assignment["project_id"]),
                    "employee_id": str(assignment["assignee_id"]),
                    "evaluator_id": ctx.user_id,
                    "overall_score": overall,
                    "strengths": strengths,
                    "areas_for_improvement": areas,
                }
            )
            await self.repo.set_assignment_status(str(assignment["id"]), AssignmentStatus.EVALUATED.value)
        finally:
            self._evaluating.discard(submission_id)

        logger.info(
            "projects.evaluated submission_id=%s assignment_id=%s overall=%.2f by=%s",
            submission_id,
            assignment["id"],
            overall,
            ctx.user_id,
        )
        return row


project_service = ProjectService()
