"""Process-local read cache for profile and role lookups.

Entries are keyed ``"<kind>:<user_id>"`` so every entry belonging to one
user can be dropped on sign-out or after an administrative update.
"""

from __future__ import annotations

import os
import time
from typing import Any, Optional

_DEFAULT_TTL = int(os.getenv("READ_CACHE_SECONDS", "60"))
_DISABLED = os.getenv("READ_CACHE_DISABLED", "false").lower() == "true"

_STORE: dict[str, tuple[Any, float]] = {}


def key_for(kind: str, user_id: str) -> str:
    return f"{kind}:{user_id}"


def get(key: str) -> Any | None:
    if _DISABLED:
        return None
    item = _STORE.get(key)
    if not item:
        return None
    value, expires_at = item
    if time.time() < expires_at:
        return value
    _STORE.pop(key, None)
    return None


def set(key: str, value: Any, ttl: Optional[int] = None) -> None:
    if _DISABLED:
        return
    ttl_s = int(ttl if ttl is not None else _DEFAULT_TTL)
    _STORE[key] = (value, time.time() + max(1, ttl_s))


def invalidate_user(user_id: str) -> int:
    suffix = f":{user_id}"
    stale = [k for k in _STORE if k.endswith(suffix)]
    for k in stale:
        _STORE.pop(k, None)
    return len(stale)


def clear(prefix: Optional[str] = None) -> None:
    if prefix is None:
        _STORE.clear()
        return
    for k in [k for k in _STORE if k.startswith(prefix)]:
        _STORE.pop(k, None)
