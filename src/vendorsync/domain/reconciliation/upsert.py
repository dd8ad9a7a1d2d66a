"""Idempotent create/update/skip of vendor facts.

Each record is reconciled inside its own unit of work. Duplicate live rows for
the same vendor and natural key are collapsed to the most recently created one
before the decision is taken, so repeated runs converge on one row per key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from vendorsync.domain.errors import PersistenceError
from vendorsync.domain.model import AuditAction, FailureReason, SkipReason, VendorFact
from vendorsync.domain.reconciliation.outcomes import RecordDecision, RecordFailure
from vendorsync.domain.reconciliation.transform import PriceTransform

if TYPE_CHECKING:
    from collections.abc import Callable

    from vendorsync.domain.model import FactValues, RawRecord
    from vendorsync.domain.ports import ReconciliationUnitOfWork, VendorFactRepository
    from vendorsync.domain.reconciliation.outcomes import RecordOutcome

log = logging.getLogger(__name__)

_VALUE_FIELDS = ("cost", "inventory_qty", "inventory_text")


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def changed_fields(fact: VendorFact, target: FactValues) -> list[str]:
    """Names of present ``target`` values that differ from ``fact``.

    Absent (``None``) incoming values never count as a change.
    """

    changed: list[str] = []
    for name in _VALUE_FIELDS:
        incoming = getattr(target, name)
        if incoming is None:
            continue
        if getattr(fact, name) != incoming:
            changed.append(name)
    return changed


@dataclass(slots=True)
class VendorFactUpserter:
    vendor_id: int
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork]
    transform: PriceTransform = field(default_factory=PriceTransform)
    dry_run: bool = False
    clock: Callable[[], datetime] = _utcnow

    def upsert(self, product_key: str, record: RawRecord) -> RecordOutcome:
        target = self.transform.target(record)
        try:
            with self.unit_of_work_factory() as uow:
                decision = self._decide(
                    uow.repositories.vendor_facts, product_key, record.vendor_sku, target
                )
                if self.dry_run:
                    uow.rollback()
                else:
                    uow.commit()
        except PersistenceError as exc:
            log.warning("Could not reconcile %s -> %s: %s", record.vendor_sku, product_key, exc)
            return RecordFailure(
                reason=FailureReason.PERSISTENCE,
                vendor_sku=record.vendor_sku,
                detail=str(exc),
            )
        return decision

    def _decide(
        self,
        facts: VendorFactRepository,
        product_key: str,
        vendor_sku: str,
        target: FactValues,
    ) -> RecordDecision:
        existing = facts.find_live(
            vendor_id=self.vendor_id, vendor_sku=vendor_sku, product_key=product_key
        )
        removed = 0
        if len(existing) > 1:
            for stale in existing[1:]:
                facts.remove(stale)
            removed = len(existing) - 1
            log.debug("Removed %s duplicate vendor facts for %s", removed, vendor_sku)

        if not existing:
            if target.cost is None:
                return RecordDecision(
                    action=AuditAction.SKIP,
                    vendor_sku=vendor_sku,
                    product_key=product_key,
                    new_value=target,
                    reason=SkipReason.NO_COST,
                )
            now = self.clock()
            fact = VendorFact(
                vendor_id=self.vendor_id,
                vendor_sku=vendor_sku,
                product_key=product_key,
                cost=target.cost,
                inventory_qty=target.inventory_qty,
                inventory_text=target.inventory_text,
                created_at=now,
                updated_at=now,
            )
            facts.add(fact)
            return RecordDecision(
                action=AuditAction.CREATE,
                vendor_sku=vendor_sku,
                product_key=product_key,
                new_value=fact.values(),
            )

        fact = existing[0]
        old_value = fact.values()
        changed = changed_fields(fact, target)
        relinked = fact.vendor_sku != vendor_sku or fact.product_key != product_key
        if not changed and not relinked:
            return RecordDecision(
                action=AuditAction.SKIP,
                vendor_sku=vendor_sku,
                product_key=product_key,
                old_value=old_value,
                new_value=old_value,
                reason=SkipReason.ALREADY_CORRECT,
                removed_duplicates=removed,
            )

        for name in changed:
            setattr(fact, name, getattr(target, name))
        fact.vendor_sku = vendor_sku
        fact.product_key = product_key
        fact.updated_at = self.clock()
        return RecordDecision(
            action=AuditAction.UPDATE,
            vendor_sku=vendor_sku,
            product_key=product_key,
            old_value=old_value,
            new_value=fact.values(),
            removed_duplicates=removed,
        )
