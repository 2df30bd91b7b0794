from __future__ import annotations

import logging
from typing import Any, Optional

from lms.common import cache
from lms.db.repository import SupabaseRepository
from lms.db.supabase import get_supabase

logger = logging.getLogger("employees.repository")

_PROFILE_WITH_ROLE = "*, role:roles(role_name, role_description)"


class EmployeeRepository(SupabaseRepository):
    async def list_profiles(self) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("profiles").select(_PROFILE_WITH_ROLE).order("first_name").execute(), op="profiles.list"
        )
        return self._rows(resp)

    async def get_profile(self, employee_id: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("profiles").select(_PROFILE_WITH_ROLE).eq("id", employee_id).limit(1).execute(),
            op="profiles.select_by_id",
        )
        return self._first(resp)

    async def update_profile(self, employee_id: str, fields: dict[str, Any]) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("profiles").update(fields).eq("id", employee_id).execute(), op="profiles.update"
        )
        cache.invalidate_user(employee_id)
        return self._first(resp)

    async def list_profiles_by_role_ids(self, role_ids: list[str]) -> list[dict[str, Any]]:
        if not role_ids:
            return []
        client = await get_supabase()
        resp = await self._exec(
            client.table("profiles").select(_PROFILE_WITH_ROLE).in_("role_id", role_ids).order("first_name").execute(),
            op="profiles.list_by_roles",
        )
        return self._rows(resp)

    # --- documents -----------------------------------------------------------
    async def insert_document(self, record: dict[str, Any]) -> dict[str, Any]:
        client = await get_supabase()
        resp = await self._exec(client.table("employee_documents").insert(record).execute(), op="documents.insert")
        return self._require_first(resp, "documents.insert")

    async def list_documents(self, employee_id: str) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("employee_documents")
            .select("*")
            .eq("employee_id", employee_id)
            .order("created_at", desc=True)
            .execute(),
            op="documents.list",
        )
        return self._rows(resp)

    async def get_document(self, document_id: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("employee_documents").select("*").eq("id", document_id).limit(1).execute(),
            op="documents.select_by_id",
        )
        return self._first(resp)

    async def delete_document(self, document_id: str) -> None:
        client = await get_supabase()
        await self._exec(client.table("employee_documents").delete().eq("id", document_id).execute(), op="documents.delete")


employee_repository = EmployeeRepository()
