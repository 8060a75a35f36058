"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import IdentityRepository
from .resolution import LinkResolutionError, LinkResolver
from .unit_of_work import (
    IdentityRepositories,
    IdentityUnitOfWork,
    IdentityUnitOfWorkFactory,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "IdentityRepositories",
    "IdentityRepository",
    "IdentityUnitOfWork",
    "IdentityUnitOfWorkFactory",
    "LinkResolutionError",
    "LinkResolver",
    "RepositoryCollection",
    "UnitOfWork",
]
