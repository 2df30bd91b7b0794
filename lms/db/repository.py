from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

from lms.common.errors import StoreError
from lms.core.config import get_settings

logger = logging.getLogger("db.repository")


class SupabaseRepository:
    """Shared execution wrapper for PostgREST calls.

    Applies the query timeout, logs slow calls and turns every client
    failure into ``StoreError`` so services see one failure type.
    """

    async def _exec(self, awaitable, op: str):
        timeout = get_settings().query_timeout_seconds
        t0 = time.perf_counter()
        try:
            resp = await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.error("supabase_%s timed out after %ss", op, timeout)
            raise StoreError(f"store_timeout: {op}") from exc
        except StoreError:
            raise
        except Exception as exc:
            logger.error("supabase_%s failed: %s", op, exc)
            raise StoreError(f"store_failure: {op}: {exc}") from exc
        ms = int((time.perf_counter() - t0) * 1000)
        if ms > 50:
            logger.info("supabase_%s_ms=%d", op, ms)
        return resp

    @staticmethod
    def _rows(resp) -> list[dict[str, Any]]:
        data = getattr(resp, "data", None)
        if data is None:
            return []
        return data if isinstance(data, list) else [data]

    @classmethod
    def _first(cls, resp) -> Optional[dict[str, Any]]:
        rows = cls._rows(resp)
        return rows[0] if rows else None

    @classmethod
    def _require_first(cls, resp, op: str) -> dict[str, Any]:
        row = cls._first(resp)
        if row is None:
            raise StoreError(f"store_failure: {op} returned no row")
        return row
