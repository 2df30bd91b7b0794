from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from lms.common import cache
from lms.common.enums import RoleName
from lms.common.errors import PermissionDenied
from lms.core.config import get_settings
from lms.db.supabase import get_supabase

from . import gotrue
from .permissions import AuthContext
from .repository import ProfileRepository, profile_repository
from .schemas import TokenPair

logger = logging.getLogger("auth.service")


def _role_label(profile: dict[str, Any]) -> Optional[str]:
    role = profile.get("role")
    if isinstance(role, list):
        role = role[0] if role else None
    if isinstance(role, dict):
        return role.get("role_name")
    return None


class AuthService:
    """Turns a GoTrue session into an explicit ``AuthContext``.

    Nothing here keeps per-user state beyond the read cache, which is
    dropped on sign-out.
    """

    def __init__(self, repo: ProfileRepository = profile_repository):
        self.repo = repo

    async def user_id_from_token(self, access_token: str) -> str:
        client = await get_supabase()
        timeout = get_settings().query_timeout_seconds
        try:
            resp = await asyncio.wait_for(client.auth.get_user(access_token), timeout=timeout)
        except Exception as exc:  # noqa: BLE001
            raise PermissionDenied("invalid_token") from exc
        user = getattr(resp, "user", None)
        if user is None or not getattr(user, "id", None):
            raise PermissionDenied("invalid_token")
        return str(user.id)

    async def resolve_context(self, user_id: str, access_token: Optional[str] = None) -> AuthContext:
        """Load profile + role, retrying while the sign-up trigger catches up.

        A missing profile, a missing role or an unrecognised role name all
        produce the no-role context.
        """
        profile: Optional[dict[str, Any]] = None
        for delay in get_settings().profile_fetch_delays:
            if delay:
                await asyncio.sleep(delay)
            profile = await self.repo.get_profile_with_role(user_id)
            if profile is not None:
                break
        if profile is None:
            logger.warning("auth.profile_missing user_id=%s", user_id)
            return AuthContext(user_id=user_id, role=None, profile={}, access_token=access_token)
        label = _role_label(profile)
        role = RoleName.try_parse(label)
        if role is None:
            logger.warning("auth.role_unresolved user_id=%s role=%r", user_id, label)
        return AuthContext(user_id=user_id, role=role, profile=profile, access_token=access_token)

    async def role_name_for_user(self, user_id: str) -> Optional[RoleName]:
        profile = await self.repo.get_profile_with_role(user_id)
        if not profile:
            return None
        return RoleName.try_parse(_role_label(profile))

    async def sign_in(self, email: str, password: str) -> tuple[TokenPair, AuthContext]:
        tokens = await gotrue.password_grant(email, password)
        user_id = tokens.user_id or await self.user_id_from_token(tokens.access_token)
        ctx = await self.resolve_context(user_id, access_token=tokens.access_token)
        logger.info("auth.sign_in user_id=%s role=%s", user_id, ctx.role.value if ctx.role else None)
        return tokens, ctx

    async def sign_out(self, ctx: AuthContext) -> bool:
        """Revoke the GoTrue session and drop every cached entry for the user.

        The cache is cleared even when revocation fails.
        """
        revoked = False
        try:
            if ctx.access_token:
                revoked = await gotrue.logout(ctx.access_token)
        finally:
            dropped = cache.invalidate_user(ctx.user_id)
            logger.info("auth.sign_out user_id=%s revoked=%s cache_dropped=%d", ctx.user_id, revoked, dropped)
        return revoked


auth_service = AuthService()
