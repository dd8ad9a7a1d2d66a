"""Typed per-record outcomes aggregated by the run loop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from vendorsync.domain.model import AuditRecord

if TYPE_CHECKING:
    from datetime import datetime

    from vendorsync.domain.model import AuditAction, FactValues, FailureReason, SkipReason


@dataclass(frozen=True, slots=True)
class RecordDecision:
    action: AuditAction
    vendor_sku: str
    product_key: str
    old_value: FactValues | None = None
    new_value: FactValues | None = None
    reason: SkipReason | None = None
    removed_duplicates: int = 0

    def to_audit(self, timestamp: datetime) -> AuditRecord:
        return AuditRecord(
            action=self.action,
            vendor_sku=self.vendor_sku,
            product_key=self.product_key,
            old_value=self.old_value,
            new_value=self.new_value,
            reason=self.reason,
            timestamp=timestamp,
        )


@dataclass(frozen=True, slots=True)
class RecordFailure:
    reason: FailureReason
    vendor_sku: str
    detail: str = ""


type RecordOutcome = RecordDecision | RecordFailure
