"""Public domain model surface."""

from __future__ import annotations

from vendorsync.domain.model.audit import AuditRecord
from vendorsync.domain.model.catalog import CatalogEntry, IdentifierAlias
from vendorsync.domain.model.enums import (
    AuditAction,
    FailureReason,
    MatchStrategy,
    RunState,
    SkipReason,
)
from vendorsync.domain.model.ingestion import IngestionCursor, RunCounters
from vendorsync.domain.model.records import FactValues, RawRecord, VendorFact

__all__ = [  # noqa: RUF022
    # catalog
    "CatalogEntry",
    "IdentifierAlias",
    # records
    "RawRecord",
    "FactValues",
    "VendorFact",
    # ingestion
    "IngestionCursor",
    "RunCounters",
    # audit
    "AuditRecord",
    # enums
    "AuditAction",
    "FailureReason",
    "MatchStrategy",
    "RunState",
    "SkipReason",
]
