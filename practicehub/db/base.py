"""ORM nexus."""

from __future__ import annotations

import importlib
import logging
import pkgutil
from pathlib import Path

from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base mold."""
    pass


def import_models() -> int:
    """Import every ``features.*.models`` module so their tables register on ``Base.metadata``."""
    features_dir = Path(__file__).resolve().parent.parent / "features"
    if not features_dir.is_dir():
        logger.warning("No features dir: %s", features_dir)
        return 0

    discovered = 0
    for pkg in pkgutil.walk_packages([str(features_dir)], prefix="practicehub.features."):
        if not pkg.name.endswith(".models"):
            continue
        importlib.import_module(pkg.name)
        discovered += 1
    logger.debug("Discovered %d model modules", discovered)
    return discovered


def list_models() -> list[str]:
    return sorted(m.class_.__name__ for m in Base.registry.mappers)


__all__ = ["Base", "import_models", "list_models"]
