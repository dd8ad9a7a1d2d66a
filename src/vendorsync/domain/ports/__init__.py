"""Ports connecting the ingestion engine to its adapters."""

from __future__ import annotations

from vendorsync.domain.ports.audit import AuditSink
from vendorsync.domain.ports.checkpoint import CheckpointStore
from vendorsync.domain.ports.fetching import RequestGate, SourceAdapter, SourcePage
from vendorsync.domain.ports.persistence import (
    CatalogRepository,
    Repository,
    VendorFactRepository,
)
from vendorsync.domain.ports.unit_of_work import (
    ReconciliationRepositories,
    ReconciliationUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AuditSink",
    "CatalogRepository",
    "CheckpointStore",
    "ReconciliationRepositories",
    "ReconciliationUnitOfWork",
    "Repository",
    "RepositoryCollection",
    "RequestGate",
    "SourceAdapter",
    "SourcePage",
    "UnitOfWork",
    "VendorFactRepository",
]
