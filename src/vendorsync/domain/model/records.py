"""Raw vendor records and the fact values derived from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, slots=True)
class RawRecord:
    """One vendor row or item after field mapping, before normalization."""

    vendor_sku: str
    brand: str | None = None
    part_number: str | None = None
    vendor_code: str | None = None
    code: str | None = None
    cost: Decimal | None = None
    inventory_qty: int | None = None
    inventory_text: str | None = None


@dataclass(frozen=True, slots=True)
class FactValues:
    """The reconcilable values of a vendor fact. ``None`` means "not provided"."""

    cost: Decimal | None = None
    inventory_qty: int | None = None
    inventory_text: str | None = None


@dataclass(eq=False)
class VendorFact:
    """Vendor-specific cost and inventory for one catalog product."""

    vendor_id: int
    vendor_sku: str
    product_key: str
    cost: Decimal
    inventory_qty: int | None = None
    inventory_text: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    id: int | None = None

    def values(self) -> FactValues:
        return FactValues(
            cost=self.cost,
            inventory_qty=self.inventory_qty,
            inventory_text=self.inventory_text,
        )
