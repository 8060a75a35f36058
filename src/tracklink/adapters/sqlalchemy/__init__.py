"""SQLAlchemy adapter package for tracklink."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import SqlAlchemyIdentityRepository
from .unit_of_work import (
    SqlAlchemyIdentityUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyIdentityRepository",
    "SqlAlchemyIdentityUnitOfWork",
    "StartupError",
    "configured_engine",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
