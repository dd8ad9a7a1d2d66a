"""Reconciliation of vendor records into vendor facts."""

from __future__ import annotations

from vendorsync.domain.reconciliation.outcomes import (
    RecordDecision,
    RecordFailure,
    RecordOutcome,
)
from vendorsync.domain.reconciliation.transform import PriceTransform
from vendorsync.domain.reconciliation.upsert import VendorFactUpserter, changed_fields

__all__ = [
    "PriceTransform",
    "RecordDecision",
    "RecordFailure",
    "RecordOutcome",
    "VendorFactUpserter",
    "changed_fields",
]
