"""Async Supabase clients (single entry point).

``get_supabase()`` returns the anon-key client every repository uses;
row-level security on the hosted project decides what each caller sees.
``get_supabase_admin()`` is built with the service-role key and is only
used to create auth users for new employees.

Import using: from lms.db.supabase import get_supabase
"""
from __future__ import annotations

import asyncio
import inspect
from typing import Any, Optional

from supabase import AsyncClient, create_async_client

from lms.core.config import get_settings

_settings = get_settings()
_client: Optional[AsyncClient] = None
_admin_client: Optional[AsyncClient] = None
_lock = asyncio.Lock()


async def get_supabase() -> AsyncClient:
    global _client
    if _client is not None:
        return _client
    async with _lock:
        if _client is None:
            try:
                _client = await create_async_client(_settings.supabase_url, _settings.supabase_key)
            except Exception as exc:  # pragma: no cover (network/init failure)
                raise RuntimeError("Could not create Supabase async client") from exc
    return _client


async def get_supabase_admin() -> AsyncClient:
    global _admin_client
    if _admin_client is not None:
        return _admin_client
    if not _settings.supabase_service_role_key:
        raise RuntimeError("SUPABASE_SERVICE_ROLE_KEY is not configured")
    async with _lock:
        if _admin_client is None:
            _admin_client = await create_async_client(_settings.supabase_url, _settings.supabase_service_role_key)
    return _admin_client


async def maybe_await(val: Any) -> Any:
    # storage calls are sync or async depending on the client version
    return await val if inspect.isawaitable(val) else val


__all__ = ["get_supabase", "get_supabase_admin", "maybe_await"]
