from __future__ import annotations

import logging
from typing import Any, Optional

from lms.db.repository import SupabaseRepository
from lms.db.supabase import get_supabase

logger = logging.getLogger("projects.repository")


class ProjectRepository(SupabaseRepository):
    # --- projects ------------------------------------------------------------
    async def list_projects(self) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("projects").select("*").order("created_at", desc=True).execute(), op="projects.list"
        )
        return self._rows(resp)

    async def list_projects_by_ids(self, project_ids: list[str]) -> list[dict[str, Any]]:
        if not project_ids:
            return []
        client = await get_supabase()
        resp = await self._exec(
            client.table("projects").select("*").in_("id", project_ids).execute(), op="projects.list_by_ids"
        )
        return self._rows(resp)

    async def get_project(self, project_id: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("projects").select("*").eq("id", project_id).limit(1).execute(), op="projects.select_by_id"
        )
        return self._first(resp)

    async def insert_project(self, record: dict[str, Any]) -> dict[str, Any]:
        client = await get_supabase()
        resp = await self._exec(client.table("projects").insert(record).execute(), op="projects.insert")
        return self._require_first(resp, "projects.insert")

    async def update_project(self, project_id: str, fields: dict[str, Any]) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("projects").update(fields).eq("id", project_id).execute(), op="projects.update"
        )
        return self._first(resp)

    async def delete_project(self, project_id: str) -> None:
        client = await get_supabase()
        await self._exec(client.table("projects").delete().eq("id", project_id).execute(), op="projects.delete")

    # --- assignments ---------------------------------------------------------
    async def list_assignments(
        self, project_id: Optional[str] = None, assignee_id: Optional[str] = None
    ) -> list[dict[str, Any]]:
        client = await get_supabase()
        q = client.table("project_assignments").select("*")
        if project_id:
            q = q.eq("project_id", project_id)
        if assignee_id:
            q = q.eq("assignee_id", assignee_id)
        resp = await self._exec(q.order("assigned_at", desc=True).execute(), op="assignments.list")
        return self._rows(resp)

    async def get_assignment(self, assignment_id: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("project_assignments").select("*").eq("id", assignment_id).limit(1).execute(),
            op="assignments.select_by_id",
        )
        return self._first(resp)

    async def insert_assignments(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not records:
            return []
        client = await get_supabase()
        resp = await self._exec(
            client.table("project_assignments").insert(records).execute(), op="assignments.insert"
        )
        return self._rows(resp)

    async def set_assignment_status(self, assignment_id: str, status: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("project_assignments").update({"status": status}).eq("id", assignment_id).execute(),
            op="assignments.update_status",
        )
        return self._first(resp)

    # --- submissions ---------------------------------------------------------
    async def insert_submission(self, record: dict[str, Any]) -> dict[str, Any]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("project_milestone_submissions").insert(record).execute(), op="submissions.insert"
        )
        return self._require_first(resp, "submissions.insert")

    async def get_submission(self, submission_id: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("project_milestone_submissions").select("*").eq("id", submission_id).limit(1).execute(),
            op="submissions.select_by_id",
        )
        return self._first(resp)

    async def list_submissions(self, assignment_id: str) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("project_milestone_submissions")
            .select("*")
            .eq("assignment_id", assignment_id)
            .order("submitted_at")
            .execute(),
            op="submissions.list",
        )
        return self._rows(resp)

    # --- evaluations ---------------------------------------------------------
    async def get_evaluation_for_submission(self, submission_id: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("project_evaluations").select("*").eq("submission_id", submission_id).limit(1).execute(),
            op="evaluations.select_by_submission",
        )
        return self._first(resp)

    async def list_evaluations(self, submission_ids: list[str]) -> list[dict[str, Any]]:
        if not submission_ids:
            return []
        client = await get_supabase()
        resp = await self._exec(
            client.table("project_evaluations").select("*").in_("submission_id", submission_ids).execute(),
            op="evaluations.list",
        )
        return self._rows(resp)

    async def insert_evaluation(self, record: dict[str, Any]) -> dict[str, Any]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("project_evaluations").insert(record).execute(), op="evaluations.insert"
        )
        return self._require_first(resp, "evaluations.insert")


project_repository = ProjectRepository()
