"""Translate vendor API items into raw records."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import cast

from vendorsync.domain.model import RawRecord
from vendorsync.domain.normalization import clean_text, parse_cost, parse_quantity


def extract(item: Mapping[str, object], path: str) -> object:
    """Follow a dotted path (``attributes.part_number``) through nested mappings."""

    current: object = item
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = cast(Mapping[str, object], current).get(part)
    return current


def _sum_locations(value: object) -> object:
    if isinstance(value, Sequence) and not isinstance(value, str | bytes):
        total = 0
        for entry in cast("Sequence[object]", value):
            quantity = parse_quantity(entry)
            if quantity is not None:
                total += quantity
        return total
    return value


def parse_item(item: Mapping[str, object], fields: Mapping[str, str]) -> RawRecord | None:
    """Build a raw record from ``item``; items without any identifier are skipped."""

    def text(name: str) -> str | None:
        path = fields.get(name)
        return clean_text(extract(item, path)) if path else None

    brand = text("brand")
    part_number = text("part_number")
    vendor_code = text("vendor_code")
    code = text("code")
    vendor_sku = text("vendor_sku") or code or part_number
    if vendor_sku is None:
        return None

    cost_path = fields.get("cost")
    inventory_path = fields.get("inventory_qty")
    inventory_value = extract(item, inventory_path) if inventory_path else None

    return RawRecord(
        vendor_sku=vendor_sku,
        brand=brand,
        part_number=part_number,
        vendor_code=vendor_code,
        code=code,
        cost=parse_cost(extract(item, cost_path)) if cost_path else None,
        inventory_qty=parse_quantity(_sum_locations(inventory_value)),
        inventory_text=text("inventory_text"),
    )
