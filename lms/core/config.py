from __future__ import annotations

import os
from functools import lru_cache
from dotenv import load_dotenv, find_dotenv

_env_path = find_dotenv(".env") or ".env"
load_dotenv(_env_path, override=False)


def _float_csv(raw: str) -> tuple[float, ...]:
    values = []
    for part in raw.split(","):
        part = part.strip()
        if part:
            values.append(max(0.0, float(part)))
    return tuple(values) or (0.0,)


class Settings:
    """Central configuration (env driven)."""

    def __init__(self) -> None:
        # Supabase
        raw_url = os.getenv("SUPABASE_URL", "")
        self.supabase_url: str = raw_url.rstrip("/")
        self.supabase_anon_key: str = os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY", "")
        self.supabase_key: str = self.supabase_anon_key  # alias
        self.supabase_service_role_key: str = (
            os.getenv("SUPABASE_SERVICE_ROLE_KEY")
            or os.getenv("SUPABASE_SERVICE_KEY")
            or ""
        )
        self.query_timeout_seconds: float = float(os.getenv("SUPABASE_QUERY_TIMEOUT", "5"))
        # Database (migrations only)
        self.database_url: str = os.getenv("DATABASE_URL", "")
        # Object storage
        self.documents_bucket: str = os.getenv("DOCUMENTS_BUCKET", "employee-documents")
        self.submissions_bucket: str = os.getenv("SUBMISSIONS_BUCKET", "project-submissions")
        self.signed_url_ttl_seconds: int = int(os.getenv("SIGNED_URL_TTL_SECONDS", "60"))
        # Profile lookup retries after sign-up (trigger lag)
        self.profile_fetch_delays: tuple[float, ...] = _float_csv(os.getenv("PROFILE_FETCH_DELAYS", "0,0.2,1.0"))
        # Assessments
        self.default_time_limit_minutes: int = int(os.getenv("DEFAULT_TIME_LIMIT_MINUTES", "60"))
        # App meta
        self.app_name: str = "LMS Backend"
        self.debug: bool = os.getenv("DEBUG", "False").lower() == "true"
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def get_database_url(self) -> str:
        return self.database_url


@lru_cache()
def get_settings() -> Settings:
    return Settings()
