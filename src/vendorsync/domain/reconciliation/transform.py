"""Run-level price transform applied to incoming vendor costs."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from vendorsync.domain.model import FactValues

if TYPE_CHECKING:
    from vendorsync.domain.model import RawRecord


@dataclass(frozen=True, slots=True)
class PriceTransform:
    """``cost * multiplier * (1 + markup)``, rounded half-up to ``places``."""

    multiplier: Decimal = Decimal(1)
    markup: Decimal = Decimal(0)
    places: int = 2

    def __post_init__(self) -> None:
        if self.multiplier <= 0:
            raise ValueError("multiplier must be positive")
        if self.markup < -1:
            raise ValueError("markup cannot be below -100%")
        if self.places < 0:
            raise ValueError("places must be non-negative")

    def apply(self, cost: Decimal | None) -> Decimal | None:
        if cost is None:
            return None
        value = cost * self.multiplier * (Decimal(1) + self.markup)
        return value.quantize(Decimal(1).scaleb(-self.places), rounding=ROUND_HALF_UP)

    def target(self, record: RawRecord) -> FactValues:
        return FactValues(
            cost=self.apply(record.cost),
            inventory_qty=record.inventory_qty,
            inventory_text=record.inventory_text,
        )
