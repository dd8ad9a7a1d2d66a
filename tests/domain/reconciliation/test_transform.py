from __future__ import annotations

from decimal import Decimal

import pytest

from vendorsync.domain.model import FactValues, RawRecord
from vendorsync.domain.reconciliation import PriceTransform


def test_identity_transform_rounds_half_up() -> None:
    transform = PriceTransform()

    assert transform.apply(Decimal("10.005")) == Decimal("10.01")
    assert transform.apply(Decimal("10.004")) == Decimal("10.00")
    assert transform.apply(None) is None


def test_multiplier_and_markup_are_applied_in_order() -> None:
    transform = PriceTransform(multiplier=Decimal("1.35"), markup=Decimal("0.10"))

    assert transform.apply(Decimal("100")) == Decimal("148.50")


def test_rounding_places_are_configurable() -> None:
    assert PriceTransform(places=0).apply(Decimal("2.5")) == Decimal(3)
    assert PriceTransform(places=3).apply(Decimal("1.23456")) == Decimal("1.235")


def test_target_carries_inventory_unchanged() -> None:
    record = RawRecord(
        vendor_sku="A1",
        cost=Decimal("9.999"),
        inventory_qty=4,
        inventory_text="in stock",
    )

    assert PriceTransform().target(record) == FactValues(
        cost=Decimal("10.00"), inventory_qty=4, inventory_text="in stock"
    )


@pytest.mark.parametrize(
    "kwargs",
    [
        {"multiplier": Decimal(0)},
        {"markup": Decimal("-1.5")},
        {"places": -1},
    ],
)
def test_invalid_transforms_are_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(ValueError):  # noqa: PT011
        PriceTransform(**kwargs)  # type: ignore[arg-type]
