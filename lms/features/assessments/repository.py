from __future__ import annotations

import logging
from typing import Any, Optional

from lms.db.repository import SupabaseRepository
from lms.db.supabase import get_supabase

logger = logging.getLogger("assessments.repository")

_QUESTION_WITH_OPTIONS = "*, question_options(*)"


class AssessmentRepository(SupabaseRepository):
    # --- templates -----------------------------------------------------------
    async def list_templates(self, course_id: str) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("assessment_templates").select("*").eq("course_id", course_id).order("created_at").execute(),
            op="templates.list",
        )
        return self._rows(resp)

    async def get_template(self, template_id: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("assessment_templates").select("*").eq("id", template_id).limit(1).execute(),
            op="templates.select_by_id",
        )
        return self._first(resp)

    async def insert_template(self, record: dict[str, Any]) -> dict[str, Any]:
        client = await get_supabase()
        resp = await self._exec(client.table("assessment_templates").insert(record).execute(), op="templates.insert")
        return self._require_first(resp, "templates.insert")

    async def update_template(self, template_id: str, fields: dict[str, Any]) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("assessment_templates").update(fields).eq("id", template_id).execute(), op="templates.update"
        )
        return self._first(resp)

    async def delete_template(self, template_id: str) -> None:
        client = await get_supabase()
        await self._exec(
            client.table("assessment_templates").delete().eq("id", template_id).execute(), op="templates.delete"
        )

    # --- questions -----------------------------------------------------------
    async def list_questions(self, template_id: str) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("assessment_questions")
            .select(_QUESTION_WITH_OPTIONS)
            .eq("assessment_template_id", template_id)
            .order("question_order")
            .execute(),
            op="questions.list",
        )
        return self._rows(resp)

    async def get_question(self, question_id: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("assessment_questions").select(_QUESTION_WITH_OPTIONS).eq("id", question_id).limit(1).execute(),
            op="questions.select_by_id",
        )
        return self._first(resp)

    async def insert_question(self, record: dict[str, Any]) -> dict[str, Any]:
        client = await get_supabase()
        resp = await self._exec(client.table("assessment_questions").insert(record).execute(), op="questions.insert")
        return self._require_first(resp, "questions.insert")

    async def update_question(self, question_id: str, fields: dict[str, Any]) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("assessment_questions").update(fields).eq("id", question_id).execute(), op="questions.update"
        )
        return self._first(resp)

    async def delete_question(self, question_id: str) -> None:
        client = await get_supabase()
        await self._exec(
            client.table("assessment_questions").delete().eq("id", question_id).execute(), op="questions.delete"
        )

    async def insert_options(self, question_id: str, options: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not options:
            return []
        client = await get_supabase()
        records = [{**o, "question_id": question_id} for o in options]
        resp = await self._exec(client.table("question_options").insert(records).execute(), op="options.insert")
        return self._rows(resp)

    async def replace_options(self, question_id: str, options: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """New options are written before the old ones go, so a failed write
        leaves the previous set in place."""
        client = await get_supabase()
        resp = await self._exec(
            client.table("question_options").select("id").eq("question_id", question_id).execute(), op="options.select"
        )
        old_ids = [str(r["id"]) for r in self._rows(resp)]
        inserted = await self.insert_options(question_id, options)
        if old_ids:
            await self._exec(client.table("question_options").delete().in_("id", old_ids).execute(), op="options.delete")
        return inserted

    # --- results -------------------------------------------------------------
    async def insert_result(self, record: dict[str, Any]) -> dict[str, Any]:
        client = await get_supabase()
        resp = await self._exec(client.table("course_assessments").insert(record).execute(), op="results.insert")
        return self._require_first(resp, "results.insert")

    async def list_results(self, employee_id: str, template_id: Optional[str] = None) -> list[dict[str, Any]]:
        client = await get_supabase()
        q = client.table("course_assessments").select("*").eq("employee_id", employee_id)
        if template_id:
            q = q.eq("assessment_template_id", template_id)
        resp = await self._exec(q.order("created_at", desc=True).execute(), op="results.list")
        return self._rows(resp)


assessment_repository = AssessmentRepository()
