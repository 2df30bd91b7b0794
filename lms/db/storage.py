"""Object storage helpers over the Supabase storage API."""

from __future__ import annotations

import logging
from typing import Optional

from lms.common.errors import StoreError

from .supabase import get_supabase, maybe_await

logger = logging.getLogger("db.storage")


def _response_error(res) -> Optional[str]:
    if isinstance(res, dict) and res.get("error"):
        return str(res.get("error"))
    return None


async def upload_object(bucket_name: str, path: str, data: bytes, content_type: Optional[str] = None) -> str:
    client = await get_supabase()
    bucket = client.storage.from_(bucket_name)
    options = {"content-type": content_type, "upsert": "false"} if content_type else {"upsert": "false"}
    try:
        res = await maybe_await(bucket.upload(path=path, file=data, file_options=options))
    except Exception as exc:
        logger.exception("storage.upload failed bucket=%s path=%s", bucket_name, path)
        raise StoreError(f"upload_failed: {exc}") from exc
    err = _response_error(res)
    if err:
        logger.error("storage.upload error bucket=%s path=%s error=%s", bucket_name, path, err)
        raise StoreError(f"upload_failed: {err}")
    return path


async def remove_objects(bucket_name: str, paths: list[str]) -> None:
    client = await get_supabase()
    try:
        res = await maybe_await(client.storage.from_(bucket_name).remove(paths))
    except Exception as exc:
        logger.exception("storage.remove failed bucket=%s paths=%s", bucket_name, paths)
        raise StoreError(f"remove_failed: {exc}") from exc
    err = _response_error(res)
    if err:
        raise StoreError(f"remove_failed: {err}")


async def create_signed_url(bucket_name: str, path: str, ttl_seconds: int) -> str:
    client = await get_supabase()
    try:
        signed = await maybe_await(client.storage.from_(bucket_name).create_signed_url(path, expires_in=ttl_seconds))
    except Exception as exc:
        logger.warning("storage.signed_url failed bucket=%s path=%s: %s", bucket_name, path, exc)
        raise StoreError(f"signed_url_failed: {exc}") from exc
    # supabase-py may return 'signedURL' or 'signed_url'
    url = None
    if isinstance(signed, dict):
        url = signed.get("signedURL") or signed.get("signed_url") or signed.get("signedUrl")
    if not url:
        raise StoreError("signed_url_failed: empty response")
    return url
