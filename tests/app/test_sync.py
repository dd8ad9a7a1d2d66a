from __future__ import annotations

import csv
from collections.abc import Callable  # noqa: TC003
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from vendorsync.adapters.checkpoint_store import InMemoryCheckpointStore
from vendorsync.adapters.vendor_api import PaginatedApiSource
from vendorsync.app import build_source, checkpoint_status, reset_vendor, sync_vendor
from vendorsync.config import StorageConfig, load_run_config
from vendorsync.domain.model import CatalogEntry, IngestionCursor, RunState

if TYPE_CHECKING:
    from pathlib import Path

    from vendorsync.adapters.sqlalchemy import SqlAlchemyReconciliationUnitOfWork
    from vendorsync.config import RunConfig

UowFactory = Callable[[], "SqlAlchemyReconciliationUnitOfWork"]

FILE_VENDOR = """
[vendor]
id = 3
source_id = "keystone"

[source]
kind = "file"
paths = ["export.csv"]

[matching]
code_namespace = "keystone"

[transform]
multiplier = "2"
"""


@pytest.fixture
def vendor(tmp_path: Path) -> RunConfig:
    (tmp_path / "export.csv").write_text(
        "VendorCode,PartNumber,Cost,TotalQty\n"
        "RCS,800110,10.00,4\n"
        "RCS,800111,5.25,0\n"
        "XYZ,1,1.00,1\n",
        encoding="utf-8",
    )
    path = tmp_path / "keystone.toml"
    path.write_text(FILE_VENDOR, encoding="utf-8")
    return load_run_config(path)


@pytest.fixture
def storage(tmp_path: Path) -> StorageConfig:
    return StorageConfig(data_dir=tmp_path / "data")


@pytest.fixture
def catalog(sqlite_unit_of_work: UowFactory) -> UowFactory:
    with sqlite_unit_of_work() as uow:
        for number in ("800110", "800111"):
            uow.repositories.catalog.add(
                CatalogEntry(
                    product_key=f"RC-{number}",
                    brand="Rough Country",
                    part_number=number,
                    codes={"keystone": f"RCS{number}"},
                )
            )
        uow.commit()
    return sqlite_unit_of_work


def _stored(factory: UowFactory) -> dict[str, Decimal]:
    with factory() as uow:
        return {
            fact.product_key: fact.cost
            for fact in uow.repositories.vendor_facts.list_for_vendor(3)
        }


def test_sync_reconciles_file_and_writes_audit(
    vendor: RunConfig, storage: StorageConfig, catalog: UowFactory
) -> None:
    summary = sync_vendor(vendor, storage=storage, unit_of_work_factory=catalog)

    assert summary.state is RunState.COMPLETE
    assert summary.counters.created == 2
    assert summary.counters.unmatched == 1
    assert _stored(catalog) == {"RC-800110": Decimal(20), "RC-800111": Decimal("10.50")}

    [audit_file] = storage.audit_dir().iterdir()
    with audit_file.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))
    assert [(row["action"], row["new_cost"]) for row in rows] == [
        ("CREATE", "20.00"),
        ("CREATE", "10.50"),
    ]
    assert list(storage.checkpoint_dir().iterdir()) == []


def test_dry_run_leaves_store_untouched(
    vendor: RunConfig, storage: StorageConfig, catalog: UowFactory
) -> None:
    summary = sync_vendor(vendor, dry_run=True, storage=storage, unit_of_work_factory=catalog)

    assert summary.counters.created == 2
    assert _stored(catalog) == {}


def test_restart_discards_checkpoint(
    vendor: RunConfig, storage: StorageConfig, catalog: UowFactory
) -> None:
    checkpoints = InMemoryCheckpointStore()
    checkpoints.save(IngestionCursor(source_id="keystone", position=1))

    summary = sync_vendor(
        vendor,
        restart=True,
        storage=storage,
        unit_of_work_factory=catalog,
        checkpoints=checkpoints,
    )

    assert summary.resumed_from is None
    assert summary.counters.created == 2


def test_reset_removes_facts_and_checkpoint(
    vendor: RunConfig, storage: StorageConfig, catalog: UowFactory
) -> None:
    sync_vendor(vendor, storage=storage, unit_of_work_factory=catalog)
    checkpoints = InMemoryCheckpointStore()
    checkpoints.save(IngestionCursor(source_id="keystone", position=4))

    removed = reset_vendor(vendor, unit_of_work_factory=catalog, checkpoints=checkpoints)

    assert removed == 2
    assert _stored(catalog) == {}
    assert checkpoint_status(vendor, checkpoints=checkpoints) is None


def test_api_vendor_builds_paginated_source(tmp_path: Path) -> None:
    path = tmp_path / "acme.toml"
    path.write_text(
        '[vendor]\nid = 1\nsource_id = "acme"\n\n'
        '[source]\nkind = "api"\nbase_url = "https://api.acme.test"\n\n'
        '[source.fields]\nbrand = "brand"\npart_number = "mpn"\ncost = "price"\n',
        encoding="utf-8",
    )

    source = build_source(load_run_config(path))

    assert isinstance(source, PaginatedApiSource)
    assert source.auth is None
