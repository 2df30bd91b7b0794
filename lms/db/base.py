"""ORM nexus. Auto-discover feature models.

The schema lives in the hosted database; these models exist so Alembic
can create and diff it.
"""

from __future__ import annotations

import importlib
import logging
import os
import pkgutil
from pathlib import Path

from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def discover_feature_models() -> int:
    if os.getenv("SKIP_MODEL_DISCOVERY", "false").lower() == "true":
        logger.info("Skip model discovery (env flag).")
        return 0

    features_dir = Path(__file__).resolve().parent.parent / "features"
    if not features_dir.is_dir():
        logger.warning("No features dir: %s", features_dir)
        return 0

    discovered = 0
    for pkg in pkgutil.walk_packages([str(features_dir)], prefix="lms.features."):
        if not pkg.name.endswith(".models"):
            continue
        importlib.import_module(pkg.name)
        discovered += 1
    logger.debug("Discovered %d model modules", discovered)
    return discovered


def list_models() -> list[str]:
    return sorted(m.class_.__name__ for m in Base.registry.mappers)


__all__ = ["Base", "discover_feature_models", "list_models"]
