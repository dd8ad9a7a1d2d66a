"""SQLAlchemy adapter package for vendorsync."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import SqlAlchemyCatalogRepository, SqlAlchemyVendorFactRepository
from .unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCatalogRepository",
    "SqlAlchemyReconciliationUnitOfWork",
    "SqlAlchemyVendorFactRepository",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
