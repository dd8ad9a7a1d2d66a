"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from collections import defaultdict
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, insert, or_, select
from sqlalchemy.exc import SQLAlchemyError

from vendorsync.adapters.sqlalchemy.mappings import (
    catalog_code_table,
    catalog_product_table,
    vendor_fact_table,
)
from vendorsync.domain.errors import PersistenceError
from vendorsync.domain.model import CatalogEntry, VendorFact

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session


@contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Re-raise driver and ORM failures as :class:`PersistenceError`."""

    try:
        yield
    except SQLAlchemyError as exc:
        raise PersistenceError(f"{action} failed: {exc}") from exc


class SqlAlchemyCatalogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: CatalogEntry) -> None:
        with translate_errors("catalog insert"):
            self.session.execute(
                insert(catalog_product_table).values(
                    product_key=entity.product_key,
                    brand=entity.brand,
                    part_number=entity.part_number,
                )
            )
            for namespace, value in entity.codes.items():
                self.session.execute(
                    insert(catalog_code_table).values(
                        product_key=entity.product_key, namespace=namespace, value=value
                    )
                )

    def load_catalog(self) -> list[CatalogEntry]:
        """Every catalog entry, ordered by product key."""

        codes: defaultdict[str, dict[str, str]] = defaultdict(dict)
        with translate_errors("catalog read"):
            code_rows = self.session.execute(
                select(
                    catalog_code_table.c.product_key,
                    catalog_code_table.c.namespace,
                    catalog_code_table.c.value,
                )
            )
            for product_key, namespace, value in code_rows:
                codes[product_key][namespace] = value

            product_rows = self.session.execute(
                select(
                    catalog_product_table.c.product_key,
                    catalog_product_table.c.brand,
                    catalog_product_table.c.part_number,
                ).order_by(catalog_product_table.c.product_key)
            )
            return [
                CatalogEntry(
                    product_key=product_key,
                    brand=brand,
                    part_number=part_number,
                    codes=codes.get(product_key, {}),
                )
                for product_key, brand, part_number in product_rows
            ]


class SqlAlchemyVendorFactRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: VendorFact) -> None:
        with translate_errors("vendor fact insert"):
            self.session.add(entity)

    def remove(self, entity: VendorFact) -> None:
        with translate_errors("vendor fact delete"):
            self.session.delete(entity)

    def find_live(self, *, vendor_id: int, vendor_sku: str, product_key: str) -> list[VendorFact]:
        stmt = (
            select(VendorFact)
            .where(vendor_fact_table.c.vendor_id == vendor_id)
            .where(
                or_(
                    vendor_fact_table.c.vendor_sku == vendor_sku,
                    vendor_fact_table.c.product_key == product_key,
                )
            )
            .order_by(vendor_fact_table.c.created_at.desc(), vendor_fact_table.c.id.desc())
        )
        with translate_errors("vendor fact lookup"):
            return list(self.session.execute(stmt).scalars())

    def list_for_vendor(self, vendor_id: int) -> list[VendorFact]:
        stmt = (
            select(VendorFact)
            .where(vendor_fact_table.c.vendor_id == vendor_id)
            .order_by(vendor_fact_table.c.id)
        )
        with translate_errors("vendor fact listing"):
            return list(self.session.execute(stmt).scalars())

    def delete_for_vendor(self, vendor_id: int) -> int:
        stmt = delete(vendor_fact_table).where(vendor_fact_table.c.vendor_id == vendor_id)
        with translate_errors("vendor fact reset"):
            result = cast("CursorResult[Any]", self.session.execute(stmt))
        return result.rowcount or 0
