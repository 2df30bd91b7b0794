"""Shared FastAPI dependencies for authentication and authorization."""

from __future__ import annotations

import logging
import time
from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lms.common.errors import LMSError, PermissionDenied, to_http
from lms.features.auth.permissions import AuthContext, Capability
from lms.features.auth.service import auth_service

logger = logging.getLogger("auth.deps")
security = HTTPBearer(auto_error=True)


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthContext:
    """Verify the bearer token and resolve the caller's profile and role.

    The context is cached on ``request.state.auth`` so several dependencies
    in one request share a single lookup.
    """
    cached: AuthContext | None = getattr(request.state, "auth", None)
    if cached is not None:
        return cached

    token = credentials.credentials
    t0 = time.perf_counter()
    try:
        user_id = await auth_service.user_id_from_token(token)
    except PermissionDenied as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication credentials") from exc
    try:
        ctx = await auth_service.resolve_context(user_id, access_token=token)
    except LMSError as exc:
        raise to_http(exc) from exc
    request.state.auth = ctx

    logger.info(
        "auth_resolved user_id=%s role=%s request_id=%s path=%s ms=%d",
        ctx.user_id,
        ctx.role.value if ctx.role else None,
        getattr(request.state, "request_id", None),
        request.url.path,
        int((time.perf_counter() - t0) * 1000),
    )
    return ctx


def require_capability(*capabilities: Capability) -> Callable:
    """Factory returning a dependency that demands every listed capability."""

    async def _checker(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        missing = [c.value for c in capabilities if not ctx.can(c)]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"error_code": PermissionDenied.error_code, "message": f"missing_capability: {','.join(missing)}"},
            )
        return ctx

    return _checker


def require_role_assigned() -> Callable:
    async def _checker(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if not ctx.has_role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"error_code": PermissionDenied.error_code, "message": "role_pending"},
            )
        return ctx

    return _checker
