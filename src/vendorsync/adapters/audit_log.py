"""CSV audit log: one row per reconciliation decision, flushed as it is written."""

from __future__ import annotations

import csv
import logging
from typing import TYPE_CHECKING, Final

from vendorsync.config.storage import safe_filename

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path

    from vendorsync.domain.model import AuditRecord, FactValues

log = logging.getLogger(__name__)

AUDIT_COLUMNS: Final[tuple[str, ...]] = (
    "action",
    "vendor_sku",
    "product_key",
    "old_cost",
    "new_cost",
    "old_inventory",
    "new_inventory",
)


def audit_filename(source_id: str, started_at: datetime) -> str:
    return f"audit-{safe_filename(source_id)}-{started_at:%Y%m%dT%H%M%SZ}.csv"


def _cost(values: FactValues | None) -> str:
    if values is None or values.cost is None:
        return ""
    return str(values.cost)


def _inventory(values: FactValues | None) -> str:
    if values is None:
        return ""
    if values.inventory_qty is not None:
        return str(values.inventory_qty)
    return values.inventory_text or ""


class CsvAuditLog:
    def __init__(self, path: Path) -> None:
        self.path = path
        path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = path.open("w", newline="", encoding="utf-8")
        self._writer = csv.writer(self._handle)
        self._writer.writerow(AUDIT_COLUMNS)
        self._handle.flush()
        self.rows = 0
        log.info("Writing audit log to %s", path)

    @classmethod
    def for_run(cls, directory: Path, source_id: str, started_at: datetime) -> CsvAuditLog:
        return cls(directory / audit_filename(source_id, started_at))

    def record(self, entry: AuditRecord) -> None:
        self._writer.writerow(
            (
                entry.action.value,
                entry.vendor_sku,
                entry.product_key,
                _cost(entry.old_value),
                _cost(entry.new_value),
                _inventory(entry.old_value),
                _inventory(entry.new_value),
            )
        )
        self._handle.flush()
        self.rows += 1

    def close(self) -> None:
        if not self._handle.closed:
            self._handle.close()
