from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from vendorsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    StartupError,
    configured_engine,
    shutdown,
    startup,
)
from vendorsync.domain.errors import PersistenceError
from vendorsync.domain.model import CatalogEntry, VendorFact

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyReconciliationUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_commit_persists_and_exit_without_commit_discards(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyReconciliationUnitOfWork() as uow:
        uow.repositories.vendor_facts.add(
            VendorFact(vendor_id=1, vendor_sku="A1", product_key="P-1", cost=Decimal(5))
        )
        uow.commit()

    with SqlAlchemyReconciliationUnitOfWork() as uow:
        uow.repositories.vendor_facts.add(
            VendorFact(vendor_id=1, vendor_sku="A2", product_key="P-2", cost=Decimal(6))
        )
        uow.rollback()

    with SqlAlchemyReconciliationUnitOfWork() as uow:
        facts = uow.repositories.vendor_facts.list_for_vendor(1)

    assert [fact.vendor_sku for fact in facts] == ["A1"]


def test_exception_rolls_back(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError), SqlAlchemyReconciliationUnitOfWork() as uow:
        uow.repositories.catalog.add(CatalogEntry(product_key="P-1"))
        raise RuntimeError("boom")

    with SqlAlchemyReconciliationUnitOfWork() as uow:
        assert uow.repositories.catalog.load_catalog() == []


def test_duplicate_catalog_entry_raises_persistence_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    with SqlAlchemyReconciliationUnitOfWork() as uow:
        uow.repositories.catalog.add(CatalogEntry(product_key="P-1"))
        uow.commit()

    with pytest.raises(PersistenceError), SqlAlchemyReconciliationUnitOfWork() as uow:
        uow.repositories.catalog.add(CatalogEntry(product_key="P-1"))
        uow.commit()


def test_session_is_released_after_exit(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyReconciliationUnitOfWork()

    with uow:
        pass

    with pytest.raises(StartupError):
        _ = uow.repositories
