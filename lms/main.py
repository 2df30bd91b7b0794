"""FastAPI entrypoint."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lms.common.middleware import RequestIdMiddleware
from lms.core.config import get_settings
from lms.db.base import discover_feature_models, list_models
from lms.features.assessments.endpoints import router as assessments_router
from lms.features.assessments.timer import attempt_registry
from lms.features.auth.endpoints import router as auth_router
from lms.features.courses.endpoints import router as courses_router
from lms.features.employees.endpoints import router as employees_router
from lms.features.projects.endpoints import router as projects_router
from lms.features.training.endpoints import router as training_router

_settings = get_settings()
logging.basicConfig(
    level=getattr(logging, _settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(title=_settings.app_name, debug=_settings.debug)
# feature models register on Base once, at import
discover_feature_models()
_START_TIME = datetime.now(timezone.utc)


# ------------------------
# CORS Setup
# ------------------------
def _split_env_csv(name: str, default: str = ""):
    raw = os.getenv(name, default)
    return [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]


_FRONTEND_ORIGINS = _split_env_csv(
    "ALLOW_ORIGINS",
    "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173,http://127.0.0.1:3000",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)


# ------------------------
# Routers
# ------------------------
app.include_router(auth_router)
app.include_router(employees_router)
app.include_router(courses_router)
app.include_router(assessments_router)
app.include_router(projects_router)
app.include_router(training_router)


# ------------------------
# Meta endpoints
# ------------------------
@app.get("/", tags=["meta"], summary="API Root")
async def root():
    return {
        "name": _settings.app_name,
        "status": "ok",
        "docs": "/docs",
        "health": "/healthz",
    }


@app.get("/healthz", tags=["meta"], summary="Liveness probe")
async def healthz() -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    return {
        "status": "ok",
        "time_utc": now.isoformat(),
        "uptime_seconds": round((now - _START_TIME).total_seconds(), 2),
        "version": os.getenv("APP_VERSION", "dev"),
        "environment": "debug" if _settings.debug else "prod",
        "components": {
            "supabase": "configured" if _settings.supabase_url and _settings.supabase_anon_key else "missing-config",
        },
        "counts": {
            "routes": len(app.routes),
            "models": len(list_models()),
            "open_attempts": attempt_registry.active_count(),
        },
    }


@app.on_event("shutdown")
async def _cancel_attempt_timers():
    attempt_registry.clear()
