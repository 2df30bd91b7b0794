from __future__ import annotations

import logging
from typing import Any, Optional

from lms.db.repository import SupabaseRepository
from lms.db.supabase import get_supabase

logger = logging.getLogger("courses.repository")


class CourseRepository(SupabaseRepository):
    # --- courses -------------------------------------------------------------
    async def list_courses(self) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("courses").select("*").order("created_at", desc=True).execute(), op="courses.list"
        )
        return self._rows(resp)

    async def get_course(self, course_id: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("courses").select("*").eq("id", course_id).limit(1).execute(), op="courses.select_by_id"
        )
        return self._first(resp)

    async def insert_course(self, record: dict[str, Any]) -> dict[str, Any]:
        client = await get_supabase()
        resp = await self._exec(client.table("courses").insert(record).execute(), op="courses.insert")
        return self._require_first(resp, "courses.insert")

    async def update_course(self, course_id: str, fields: dict[str, Any]) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(client.table("courses").update(fields).eq("id", course_id).execute(), op="courses.update")
        return self._first(resp)

    async def delete_course(self, course_id: str) -> None:
        # modules, templates, questions and options go with it (ON DELETE CASCADE)
        client = await get_supabase()
        await self._exec(client.table("courses").delete().eq("id", course_id).execute(), op="courses.delete")

    # --- modules -------------------------------------------------------------
    async def list_modules(self, course_id: str) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("course_modules").select("*").eq("course_id", course_id).order("module_order").execute(),
            op="modules.list",
        )
        return self._rows(resp)

    async def get_module(self, module_id: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("course_modules").select("*").eq("id", module_id).limit(1).execute(), op="modules.select_by_id"
        )
        return self._first(resp)

    async def insert_module(self, record: dict[str, Any]) -> dict[str, Any]:
        client = await get_supabase()
        resp = await self._exec(client.table("course_modules").insert(record).execute(), op="modules.insert")
        return self._require_first(resp, "modules.insert")

    async def update_module(self, module_id: str, fields: dict[str, Any]) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("course_modules").update(fields).eq("id", module_id).execute(), op="modules.update"
        )
        return self._first(resp)

    async def delete_module(self, module_id: str) -> None:
        client = await get_supabase()
        await self._exec(client.table("course_modules").delete().eq("id", module_id).execute(), op="modules.delete")

    # --- enrollments ---------------------------------------------------------
    async def get_enrollment(self, course_id: str, employee_id: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("course_enrollments")
            .select("*")
            .eq("course_id", course_id)
            .eq("employee_id", employee_id)
            .limit(1)
            .execute(),
            op="enrollments.select",
        )
        return self._first(resp)

    async def list_enrollments_for_course(self, course_id: str) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("course_enrollments").select("*").eq("course_id", course_id).execute(),
            op="enrollments.list_by_course",
        )
        return self._rows(resp)

    async def list_enrollments_for_employee(self, employee_id: str) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("course_enrollments")
            .select("*")
            .eq("employee_id", employee_id)
            .order("enrolled_date", desc=True)
            .execute(),
            op="enrollments.list_by_employee",
        )
        return self._rows(resp)

    async def insert_enrollments(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not records:
            return []
        client = await get_supabase()
        resp = await self._exec(client.table("course_enrollments").insert(records).execute(), op="enrollments.insert")
        return self._rows(resp)

    async def mark_enrollment_completed(self, enrollment_id: str, completed_at: str) -> Optional[dict[str, Any]]:
        """Stamp completion only on a row that is still ``enrolled``."""
        client = await get_supabase()
        resp = await self._exec(
            client.table("course_enrollments")
            .update({"status": "completed", "completion_date": completed_at})
            .eq("id", enrollment_id)
            .eq("status", "enrolled")
            .execute(),
            op="enrollments.complete",
        )
        return self._first(resp)

    # --- assessment inputs for completion ------------------------------------
    async def list_templates(self, course_id: str) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("assessment_templates").select("*").eq("course_id", course_id).order("created_at").execute(),
            op="templates.list_by_course",
        )
        return self._rows(resp)

    async def list_results(self, course_id: str, employee_id: str) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("course_assessments")
            .select("*")
            .eq("course_id", course_id)
            .eq("employee_id", employee_id)
            .eq("status", "Completed")
            .order("created_at")
            .execute(),
            op="results.list_by_course",
        )
        return self._rows(resp)


course_repository = CourseRepository()
