from __future__ import annotations

import logging
from typing import Any, Optional

from lms.common import cache
from lms.db.repository import SupabaseRepository
from lms.db.supabase import get_supabase

logger = logging.getLogger("auth.repository")

_PROFILE_WITH_ROLE = "*, role:roles(role_name, role_description)"


class ProfileRepository(SupabaseRepository):
    async def get_profile_with_role(self, user_id: str) -> Optional[dict[str, Any]]:
        """Profile row with ``role`` embedded; falls back to a ``roles`` read by id
        when the join yields nothing (RLS on the embedded table, stale FK)."""
        key = cache.key_for("profile", user_id)
        cached = cache.get(key)
        if cached is not None:
            return cached
        client = await get_supabase()
        resp = await self._exec(
            client.table("profiles").select(_PROFILE_WITH_ROLE).eq("id", user_id).limit(1).execute(),
            op="profiles.select_with_role",
        )
        profile = self._first(resp)
        if profile is None:
            return None
        if not profile.get("role") and profile.get("role_id"):
            role = await self.get_role(profile["role_id"])
            if role:
                profile = {**profile, "role": {"role_name": role.get("role_name"), "role_description": role.get("role_description")}}
        cache.set(key, profile)
        return profile

    async def get_role(self, role_id: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("roles").select("*").eq("id", role_id).limit(1).execute(), op="roles.select_by_id"
        )
        return self._first(resp)

    async def get_role_by_name(self, role_name: str) -> Optional[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table("roles").select("*").eq("role_name", role_name).limit(1).execute(), op="roles.select_by_name"
        )
        return self._first(resp)

    async def list_roles(self) -> list[dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(client.table("roles").select("*").order("role_name").execute(), op="roles.list")
        return self._rows(resp)


profile_repository = ProfileRepository()
