from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from tests.helpers.fakes import FakeUnitOfWork
from vendorsync.domain.errors import PersistenceError
from vendorsync.domain.model import (
    AuditAction,
    FactValues,
    FailureReason,
    RawRecord,
    SkipReason,
    VendorFact,
)
from vendorsync.domain.reconciliation import (
    PriceTransform,
    RecordDecision,
    RecordFailure,
    VendorFactUpserter,
)

VENDOR_ID = 15
T0 = datetime(2026, 1, 1, tzinfo=UTC)


@pytest.fixture
def uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()


def _upserter(uow: FakeUnitOfWork, **kwargs: object) -> VendorFactUpserter:
    return VendorFactUpserter(
        vendor_id=VENDOR_ID,
        unit_of_work_factory=lambda: uow,
        clock=lambda: T0,
        **kwargs,  # type: ignore[arg-type]
    )


def _fact(sku: str, product_key: str, cost: str, *, age_minutes: int = 0, **kwargs: object) -> VendorFact:
    created = T0 - timedelta(minutes=age_minutes)
    return VendorFact(
        vendor_id=VENDOR_ID,
        vendor_sku=sku,
        product_key=product_key,
        cost=Decimal(cost),
        created_at=created,
        updated_at=created,
        **kwargs,  # type: ignore[arg-type]
    )


def test_create_when_no_fact_exists(uow: FakeUnitOfWork) -> None:
    record = RawRecord(vendor_sku="A1", cost=Decimal("12.345"), inventory_qty=3)

    outcome = _upserter(uow).upsert("P-1", record)

    assert isinstance(outcome, RecordDecision)
    assert outcome.action is AuditAction.CREATE
    assert outcome.old_value is None
    assert outcome.new_value == FactValues(cost=Decimal("12.35"), inventory_qty=3)
    [fact] = uow.vendor_facts.facts
    assert (fact.vendor_sku, fact.product_key, fact.cost) == ("A1", "P-1", Decimal("12.35"))
    assert fact.created_at == T0
    assert uow.commits == 1


def test_create_requires_cost(uow: FakeUnitOfWork) -> None:
    outcome = _upserter(uow).upsert("P-1", RawRecord(vendor_sku="A1", inventory_qty=9))

    assert isinstance(outcome, RecordDecision)
    assert outcome.action is AuditAction.SKIP
    assert outcome.reason is SkipReason.NO_COST
    assert uow.vendor_facts.facts == []


def test_update_only_touches_present_differing_fields(uow: FakeUnitOfWork) -> None:
    existing = _fact("A1", "P-1", "15.00", age_minutes=60, inventory_qty=3, inventory_text="in stock")
    uow.vendor_facts.add(existing)

    outcome = _upserter(uow).upsert("P-1", RawRecord(vendor_sku="A1", inventory_qty=5))

    assert isinstance(outcome, RecordDecision)
    assert outcome.action is AuditAction.UPDATE
    assert outcome.old_value == FactValues(Decimal("15.00"), 3, "in stock")
    assert outcome.new_value == FactValues(Decimal("15.00"), 5, "in stock")
    assert existing.cost == Decimal("15.00")
    assert existing.inventory_text == "in stock"
    assert existing.updated_at == T0


def test_identical_values_are_a_no_op(uow: FakeUnitOfWork) -> None:
    existing = _fact("A1", "P-1", "15.00", age_minutes=60, inventory_qty=3)
    uow.vendor_facts.add(existing)

    outcome = _upserter(uow).upsert(
        "P-1", RawRecord(vendor_sku="A1", cost=Decimal("15"), inventory_qty=3)
    )

    assert isinstance(outcome, RecordDecision)
    assert outcome.action is AuditAction.SKIP
    assert outcome.reason is SkipReason.ALREADY_CORRECT
    assert existing.updated_at == T0 - timedelta(minutes=60)


def test_duplicates_collapse_to_most_recently_created(uow: FakeUnitOfWork) -> None:
    oldest = _fact("A1", "P-1", "9.00", age_minutes=120)
    newest = _fact("A1", "P-1", "11.00", age_minutes=10)
    by_product = _fact("OLD-SKU", "P-1", "10.00", age_minutes=60)
    for fact in (oldest, newest, by_product):
        uow.vendor_facts.add(fact)

    outcome = _upserter(uow).upsert("P-1", RawRecord(vendor_sku="A1", cost=Decimal("12")))

    assert isinstance(outcome, RecordDecision)
    assert outcome.action is AuditAction.UPDATE
    assert outcome.removed_duplicates == 2
    assert uow.vendor_facts.facts == [newest]
    assert newest.cost == Decimal("12.00")


def test_renamed_vendor_sku_relinks_existing_fact(uow: FakeUnitOfWork) -> None:
    existing = _fact("OLD", "P-1", "10.00", age_minutes=5)
    uow.vendor_facts.add(existing)

    outcome = _upserter(uow).upsert("P-1", RawRecord(vendor_sku="NEW", cost=Decimal("10")))

    assert isinstance(outcome, RecordDecision)
    assert outcome.action is AuditAction.UPDATE
    assert existing.vendor_sku == "NEW"


def test_facts_of_other_vendors_are_ignored(uow: FakeUnitOfWork) -> None:
    other = VendorFact(vendor_id=99, vendor_sku="A1", product_key="P-1", cost=Decimal(1))
    uow.vendor_facts.add(other)

    outcome = _upserter(uow).upsert("P-1", RawRecord(vendor_sku="A1", cost=Decimal(2)))

    assert isinstance(outcome, RecordDecision)
    assert outcome.action is AuditAction.CREATE
    assert other.cost == Decimal(1)


def test_transform_is_applied_before_comparison(uow: FakeUnitOfWork) -> None:
    uow.vendor_facts.add(_fact("A1", "P-1", "13.50", age_minutes=1))
    upserter = _upserter(uow, transform=PriceTransform(multiplier=Decimal("1.35")))

    outcome = upserter.upsert("P-1", RawRecord(vendor_sku="A1", cost=Decimal(10)))

    assert isinstance(outcome, RecordDecision)
    assert outcome.reason is SkipReason.ALREADY_CORRECT


def test_persistence_failure_is_reported_not_raised(uow: FakeUnitOfWork) -> None:
    uow.fail_commit = lambda: PersistenceError("database is locked")

    outcome = _upserter(uow).upsert("P-1", RawRecord(vendor_sku="A1", cost=Decimal(1)))

    assert isinstance(outcome, RecordFailure)
    assert outcome.reason is FailureReason.PERSISTENCE
    assert "locked" in outcome.detail
    assert uow.rollbacks == 1


def test_dry_run_rolls_back(uow: FakeUnitOfWork) -> None:
    outcome = _upserter(uow, dry_run=True).upsert(
        "P-1", RawRecord(vendor_sku="A1", cost=Decimal(1))
    )

    assert isinstance(outcome, RecordDecision)
    assert outcome.action is AuditAction.CREATE
    assert uow.commits == 0
    assert uow.rollbacks == 1
