"""Catalog and vendor fact tables.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from vendorsync.adapters.sqlalchemy.mappings import UTCDateTime

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "catalog_product",
        sa.Column("product_key", sa.String(128), nullable=False),
        sa.Column("brand", sa.String(128), nullable=True),
        sa.Column("part_number", sa.String(128), nullable=True),
        sa.PrimaryKeyConstraint("product_key", name="pk_catalog_product"),
    )
    op.create_table(
        "catalog_code",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("product_key", sa.String(128), nullable=False),
        sa.Column("namespace", sa.String(64), nullable=False),
        sa.Column("value", sa.String(128), nullable=False),
        sa.ForeignKeyConstraint(
            ["product_key"],
            ["catalog_product.product_key"],
            name="fk_catalog_code_product_key_catalog_product",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_catalog_code"),
        sa.UniqueConstraint("product_key", "namespace", name="uq_catalog_code_product_key"),
    )
    op.create_table(
        "vendor_fact",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("vendor_id", sa.Integer(), nullable=False),
        sa.Column("vendor_sku", sa.String(128), nullable=False),
        sa.Column("product_key", sa.String(128), nullable=False),
        sa.Column("cost", sa.Numeric(14, 4), nullable=False),
        sa.Column("inventory_qty", sa.Integer(), nullable=True),
        sa.Column("inventory_text", sa.String(255), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_vendor_fact"),
    )
    op.create_index("ix_vendor_fact_vendor_sku", "vendor_fact", ["vendor_id", "vendor_sku"])
    op.create_index(
        "ix_vendor_fact_vendor_product", "vendor_fact", ["vendor_id", "product_key"]
    )


def downgrade() -> None:
    op.drop_index("ix_vendor_fact_vendor_product", table_name="vendor_fact")
    op.drop_index("ix_vendor_fact_vendor_sku", table_name="vendor_fact")
    op.drop_table("vendor_fact")
    op.drop_table("catalog_code")
    op.drop_table("catalog_product")
