from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from lms.common.deps import get_auth_context, require_role_assigned
from lms.common.errors import LMSError, to_http

from .permissions import AuthContext
from .repository import profile_repository
from .schemas import LoginRequest, LoginResponse, RoleOut, SessionOut
from .service import auth_service

logger = logging.getLogger("auth.endpoints")

router = APIRouter(prefix="/auth", tags=["auth"])


def _err(exc: LMSError) -> HTTPException:
    return to_http(exc)


def _session(ctx: AuthContext) -> SessionOut:
    return SessionOut(
        user_id=ctx.user_id,
        role=ctx.role.value if ctx.role else None,
        pending_role=not ctx.has_role,
        capabilities=sorted(c.value for c in ctx.capabilities),
        first_name=ctx.profile.get("first_name"),
        last_name=ctx.profile.get("last_name"),
        email=ctx.profile.get("email"),
    )


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest) -> LoginResponse:
    try:
        tokens, ctx = await auth_service.sign_in(body.email, body.password)
    except LMSError as exc:
        raise _err(exc)
    return LoginResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.expires_in,
        session=_session(ctx),
    )


@router.post("/logout")
async def logout(ctx: AuthContext = Depends(get_auth_context)) -> dict:
    try:
        revoked = await auth_service.sign_out(ctx)
    except LMSError as exc:
        # the cache is already gone; only revocation failed
        logger.warning("auth.logout_failed user_id=%s error=%s", ctx.user_id, exc.message)
        revoked = False
    return {"message": "Logged out", "revoked": revoked}


@router.get("/me", response_model=SessionOut)
async def me(ctx: AuthContext = Depends(get_auth_context)) -> SessionOut:
    """Current session; ``pending_role`` is true until a role is assigned."""
    return _session(ctx)


@router.get("/roles", response_model=list[RoleOut])
async def roles(_: AuthContext = Depends(require_role_assigned())) -> list[RoleOut]:
    try:
        rows = await profile_repository.list_roles()
    except LMSError as exc:
        raise _err(exc)
    return [RoleOut(id=str(r["id"]), role_name=r["role_name"], role_description=r.get("role_description")) for r in rows]
