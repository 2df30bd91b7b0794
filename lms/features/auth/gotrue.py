"""Thin GoTrue (Supabase Auth) REST client.

Calls are stateless so one process can serve many signed-in users; the
shared Supabase client never holds a user session.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from lms.common.errors import PermissionDenied, StoreError
from lms.core.config import get_settings

from .schemas import TokenPair

logger = logging.getLogger("auth.gotrue")

_TIMEOUT = httpx.Timeout(connect=3, read=5, write=5, pool=5)
_LIMITS = httpx.Limits(max_connections=20, max_keepalive_connections=10)


def _auth_base() -> str:
    settings = get_settings()
    if not settings.supabase_url:
        raise StoreError("SUPABASE_URL not configured")
    return f"{settings.supabase_url}/auth/v1"


def _headers(bearer: Optional[str] = None) -> dict[str, str]:
    settings = get_settings()
    key = settings.supabase_anon_key
    if not key:
        raise StoreError("Supabase keys not configured")
    return {"apikey": key, "Authorization": f"Bearer {bearer or key}", "Content-Type": "application/json"}


def _error_message(r: httpx.Response) -> str:
    try:
        data = r.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        msg = data.get("msg") or data.get("message") or data.get("error_description") or data.get("error")
        if msg:
            return str(msg)
    return r.text.strip() or f"HTTP {r.status_code}"


async def password_grant(email: str, password: str) -> TokenPair:
    payload = {"email": email.strip().lower(), "password": password}
    try:
        async with httpx.AsyncClient(timeout=_TIMEOUT, limits=_LIMITS) as client:
            r = await client.post(f"{_auth_base()}/token?grant_type=password", headers=_headers(), json=payload)
    except httpx.HTTPError as exc:
        raise StoreError(f"auth_unreachable: {exc}") from exc
    if r.status_code != 200:
        raise PermissionDenied(f"invalid_credentials: {_error_message(r)}")
    body = r.json()
    return TokenPair(
        access_token=body["access_token"],
        refresh_token=body.get("refresh_token"),
        expires_in=body.get("expires_in"),
        user_id=(body.get("user") or {}).get("id"),
    )


async def logout(access_token: str) -> bool:
    """Revoke the session server-side. Returns False when GoTrue refused."""
    try:
        async with httpx.AsyncClient(timeout=_TIMEOUT, limits=_LIMITS) as client:
            r = await client.post(f"{_auth_base()}/logout", headers=_headers(bearer=access_token))
    except httpx.HTTPError as exc:
        raise StoreError(f"auth_unreachable: {exc}") from exc
    if r.status_code not in (200, 204):
        logger.warning("auth.logout status=%s detail=%s", r.status_code, _error_message(r))
        return False
    return True


