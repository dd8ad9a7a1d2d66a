"""Append-only audit entries for reconciliation decisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .enums import AuditAction, SkipReason
    from .records import FactValues


@dataclass(frozen=True, slots=True)
class AuditRecord:
    action: AuditAction
    vendor_sku: str
    product_key: str
    old_value: FactValues | None = None
    new_value: FactValues | None = None
    reason: SkipReason | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
