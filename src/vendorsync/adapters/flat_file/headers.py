"""Header-name aliasing for vendor exports.

Vendors rename columns between exports (``TotalQty`` vs ``Total Qty``). Each
logical field has an ordered list of candidate header names; the first
candidate present in a file wins. Resolution happens once per file and yields a
fixed column layout for every row that follows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from vendorsync.domain.model import RawRecord
from vendorsync.domain.normalization import (
    clean_text,
    derive_code,
    parse_cost,
    parse_quantity,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

DEFAULT_HEADER_ALIASES: Final[Mapping[str, tuple[str, ...]]] = {
    "vendor_sku": ("VendorSku", "Vendor SKU", "SKU", "Item Number", "ItemNumber"),
    "brand": ("Brand", "Manufacturer", "VendorName", "Vendor Name", "Mfg"),
    "part_number": (
        "PartNumber",
        "Part Number",
        "ManufacturerPartNo",
        "Manufacturer Part Number",
        "MPN",
    ),
    "vendor_code": ("VendorCode", "Vendor Code"),
    "code": ("VCPN", "Code"),
    "cost": ("Cost", "JobberPrice", "Jobber Price", "Dealer Price", "Price"),
    "inventory_qty": ("TotalQty", "Total Qty", "QtyAvailable", "Qty Available", "Quantity", "Qty"),
    "inventory_text": ("Availability", "Stock Status", "Status"),
}


def _fold(header: object) -> str:
    return "" if header is None else " ".join(str(header).split()).casefold()


@dataclass(frozen=True, slots=True)
class HeaderLayout:
    """Column index per logical field, resolved from one header row."""

    columns: Mapping[str, int]
    derive_code_from: tuple[str, str] | None = None

    def missing(self, fields: Sequence[str]) -> list[str]:
        return [name for name in fields if name not in self.columns]

    def value(self, row: Sequence[object], name: str) -> object:
        index = self.columns.get(name)
        if index is None or index >= len(row):
            return None
        return row[index]

    def record(self, row: Sequence[object]) -> RawRecord | None:
        """Build a raw record from one data row; rows without an identifier give ``None``."""

        def text(name: str) -> str | None:
            return clean_text(self.value(row, name))

        code = text("code")
        if code is None and self.derive_code_from is not None:
            head, tail = self.derive_code_from
            code = derive_code(self.value(row, head), self.value(row, tail)) or None

        part_number = text("part_number")
        vendor_sku = text("vendor_sku") or code or part_number
        if vendor_sku is None:
            return None

        return RawRecord(
            vendor_sku=vendor_sku,
            brand=text("brand"),
            part_number=part_number,
            vendor_code=text("vendor_code"),
            code=code,
            cost=parse_cost(self.value(row, "cost")),
            inventory_qty=parse_quantity(self.value(row, "inventory_qty")),
            inventory_text=text("inventory_text"),
        )


def resolve_headers(
    headers: Sequence[object],
    aliases: Mapping[str, Sequence[str]] | None = None,
    *,
    derive_code_from: tuple[str, str] | None = None,
) -> HeaderLayout:
    """Map logical fields to column indexes (case- and whitespace-insensitive)."""

    positions: dict[str, int] = {}
    for index, header in enumerate(headers):
        folded = _fold(header)
        if folded:
            positions.setdefault(folded, index)

    columns: dict[str, int] = {}
    for name, candidates in (aliases or DEFAULT_HEADER_ALIASES).items():
        for candidate in candidates:
            index = positions.get(_fold(candidate))
            if index is not None:
                columns[name] = index
                break

    derive = None
    if "code" not in columns and derive_code_from is not None:
        if all(name in columns for name in derive_code_from):
            derive = derive_code_from
    return HeaderLayout(columns=columns, derive_code_from=derive)
