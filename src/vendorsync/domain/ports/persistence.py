"""Ports for the canonical store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from vendorsync.domain.model import CatalogEntry, VendorFact

if TYPE_CHECKING:
    from collections.abc import Sequence


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class CatalogRepository(Repository[CatalogEntry], Protocol):
    """Read access to the product catalog (writes only used for seeding)."""

    def load_catalog(self) -> Sequence[CatalogEntry]: ...


@runtime_checkable
class VendorFactRepository(Repository[VendorFact], Protocol):
    """Persistence contract for vendor facts."""

    def find_live(self, *, vendor_id: int, vendor_sku: str, product_key: str) -> list[VendorFact]:
        """Rows matching the vendor and either natural key, newest first."""
        ...

    def remove(self, entity: VendorFact) -> None: ...

    def list_for_vendor(self, vendor_id: int) -> list[VendorFact]: ...

    def delete_for_vendor(self, vendor_id: int) -> int: ...
