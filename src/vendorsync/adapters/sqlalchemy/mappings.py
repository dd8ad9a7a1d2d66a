"""SQLAlchemy mapping metadata for catalog entries and vendor facts."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import Final

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
    orm,
)
from sqlalchemy.orm import configure_mappers

from vendorsync.domain.model import VendorFact

log = logging.getLogger(__name__)

COST_SCALE: Final[int] = 4


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Catalog (owned by the wider application, read here) --------------------------

catalog_product_table = Table(
    "catalog_product",
    mapper_registry.metadata,
    Column("product_key", String(128), primary_key=True),
    Column("brand", String(128), nullable=True),
    Column("part_number", String(128), nullable=True),
)

catalog_code_table = Table(
    "catalog_code",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "product_key",
        String(128),
        ForeignKey("catalog_product.product_key", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("namespace", String(64), nullable=False),
    Column("value", String(128), nullable=False),
    UniqueConstraint("product_key", "namespace"),
)

# Vendor facts -------------------------------------------------------------------

vendor_fact_table = Table(
    "vendor_fact",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("vendor_id", Integer, nullable=False),
    Column("vendor_sku", String(128), nullable=False),
    Column("product_key", String(128), nullable=False),
    Column("cost", Numeric(14, COST_SCALE, asdecimal=True), nullable=False),
    Column("inventory_qty", Integer, nullable=True),
    Column("inventory_text", String(255), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Index("ix_vendor_fact_vendor_sku", "vendor_id", "vendor_sku"),
    Index("ix_vendor_fact_vendor_product", "vendor_id", "product_key"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(VendorFact, vendor_fact_table)
    configure_mappers()
    return mapper_registry
