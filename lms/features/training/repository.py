from __future__ import annotations

import logging
from typing import Any, Optional

from lms.db.repository import SupabaseRepository
from lms.db.supabase import get_supabase

logger = logging.getLogger("training.repository")


class TrainingRepository(SupabaseRepository):
    async def list_sessions(self) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("training_sessions").select("*").order("start_datetime").execute(), op="sessions.list"
        )
        return self._rows(resp)

    async def list_sessions_for_attendee(self, employee_id: str) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("training_sessions")
            .select("*")
            .contains("attendees", [employee_id])
            .order("start_datetime")
            .execute(),
            op="sessions.list_for_attendee",
        )
        return self._rows(resp)

    async def get_session(self, session_id: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("training_sessions").select("*").eq("id", session_id).limit(1).execute(),
            op="sessions.select_by_id",
        )
        return self._first(resp)

    async def insert_session(self, record: dict[str, Any]) -> dict[str, Any]:
        client = await get_supabase()
        resp = await self._exec(client.table("training_sessions").insert(record).execute(), op="sessions.insert")
        return self._require_first(resp, "sessions.insert")

    async def set_attendees(self, session_id: str, attendees: list[str]) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("training_sessions").update({"attendees": attendees}).eq("id", session_id).execute(),
            op="sessions.update_attendees",
        )
        return self._first(resp)

    async def delete_session(self, session_id: str) -> None:
        client = await get_supabase()
        await self._exec(
            client.table("training_sessions").delete().eq("id", session_id).execute(), op="sessions.delete"
        )


training_repository = TrainingRepository()
