"""Run loop for one vendor: fetch, normalize, match, reconcile, checkpoint.

One run is one asyncio task. Pages are processed strictly in order and every
record is reconciled before the next page is requested, so the checkpoint
position always names the last page whose records are all settled.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from vendorsync.domain.errors import FatalIngestionError, SourceUnreachableError
from vendorsync.domain.ingestion.checkpoint import CheckpointManager
from vendorsync.domain.matching import MatchConfig, build_catalog_index, record_key
from vendorsync.domain.model import (
    AuditAction,
    FailureReason,
    RunCounters,
    RunState,
    SkipReason,
)
from vendorsync.domain.normalization import AliasTable
from vendorsync.domain.reconciliation import (
    PriceTransform,
    RecordDecision,
    RecordFailure,
    VendorFactUpserter,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from vendorsync.domain.ingestion.rate_limit import RequestBudget
    from vendorsync.domain.matching import CatalogIndex
    from vendorsync.domain.model import RawRecord
    from vendorsync.domain.ports import (
        AuditSink,
        CheckpointStore,
        ReconciliationUnitOfWork,
        SourceAdapter,
        SourcePage,
    )
    from vendorsync.domain.reconciliation import RecordOutcome

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, slots=True)
class RunOptions:
    vendor_id: int
    source_id: str
    match: MatchConfig = field(default_factory=MatchConfig)
    aliases: AliasTable = field(default_factory=AliasTable)
    transform: PriceTransform = field(default_factory=PriceTransform)
    checkpoint_every: int = 5
    progress_every: int = 20
    max_consecutive_failures: int = 3
    max_pages: int | None = None
    dry_run: bool = False


@dataclass(slots=True)
class RunSummary:
    source_id: str
    state: RunState
    counters: RunCounters
    started_at: datetime
    finished_at: datetime | None = None
    resumed_from: int | None = None
    last_page: int | None = None
    collisions: int = 0
    requests: int = 0

    def describe(self) -> str:
        resumed = f" resumed_after={self.resumed_from}" if self.resumed_from is not None else ""
        return (
            f"source={self.source_id} state={self.state} last_page={self.last_page}"
            f"{resumed} {self.counters.describe()} collisions={self.collisions}"
            f" requests={self.requests}"
        )


class IngestionRun:
    """Drive one vendor run through its states.

    ``INIT -> FETCHING -> MATCHING -> RECONCILING -> ... -> COMPLETE``. A page
    limit ends in ``STOPPED``; a user interrupt in ``INTERRUPTED``; a fatal
    error in ``FAILED``. All three keep the checkpoint so the next run resumes.
    """

    def __init__(
        self,
        *,
        options: RunOptions,
        source: SourceAdapter,
        unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
        checkpoints: CheckpointStore,
        audit: AuditSink | None = None,
        budget: RequestBudget | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.options = options
        self.source = source
        self.unit_of_work_factory = unit_of_work_factory
        self.audit = audit
        self.budget = budget
        self.clock = clock
        self.checkpoints = CheckpointManager(
            checkpoints,
            options.source_id,
            every=options.checkpoint_every,
            enabled=not options.dry_run,
            clock=clock,
        )
        self.upserter = VendorFactUpserter(
            vendor_id=options.vendor_id,
            unit_of_work_factory=unit_of_work_factory,
            transform=options.transform,
            dry_run=options.dry_run,
            clock=clock,
        )
        self.state = RunState.INIT
        self.counters = RunCounters()
        self.summary = RunSummary(
            source_id=options.source_id,
            state=self.state,
            counters=self.counters,
            started_at=clock(),
        )
        self._index: CatalogIndex | None = None
        # first record wins a sku or product within one run
        self._claimed_skus: set[str] = set()
        self._claimed_products: set[str] = set()
        self._started_monotonic = time.monotonic()

    async def execute(self) -> RunSummary:
        try:
            self._index = self._load_index()
            cursor = self.checkpoints.resume()
            if cursor is not None:
                self.counters = RunCounters.from_dict(cursor.counters)
                self.summary.counters = self.counters
                self.summary.resumed_from = cursor.position
                self.summary.last_page = cursor.position
            if await self._consume(self.checkpoints.start_page()):
                self.checkpoints.complete()
                self._transition(RunState.COMPLETE)
            else:
                self.checkpoints.persist()
                self._transition(RunState.STOPPED)
        except (KeyboardInterrupt, asyncio.CancelledError):
            self._transition(RunState.INTERRUPTED)
            self.checkpoints.persist()
            raise
        except FatalIngestionError:
            self._transition(RunState.FAILED)
            self.checkpoints.persist()
            raise
        finally:
            self._finish()
        return self.summary

    def _load_index(self) -> CatalogIndex:
        with self.unit_of_work_factory() as uow:
            entries = uow.repositories.catalog.load_catalog()
        index = build_catalog_index(
            entries, config=self.options.match, aliases=self.options.aliases
        )
        self.summary.collisions = index.collisions
        return index

    async def _consume(self, start_page: int) -> bool:
        """Process pages from ``start_page``; ``False`` when stopped by the page limit."""

        consecutive_failures = 0
        attempted = 0
        succeeded = 0
        self._transition(RunState.FETCHING)
        async for page in self.source.pages(start_page=start_page):
            attempted += 1
            if page.failed:
                self.counters.pages_failed += 1
                consecutive_failures += 1
                self._check_reachable(page, succeeded, consecutive_failures)
                log.warning("Page %s failed and was skipped", page.number)
            else:
                consecutive_failures = 0
                succeeded += 1
                self.counters.pages += 1
                self._process_page(page)
                self.checkpoints.advance(page.number, self.counters)
                self.summary.last_page = page.number
            self._report_progress(page, attempted)
            if self.options.max_pages is not None and attempted >= self.options.max_pages:
                log.info("Page limit of %s reached", self.options.max_pages)
                return False
            self._transition(RunState.FETCHING)
        return True

    def _check_reachable(self, page: SourcePage, succeeded: int, consecutive: int) -> None:
        if succeeded == 0 and consecutive == 1 and page.total_pages is None:
            raise SourceUnreachableError(
                f"{self.options.source_id}: first page {page.number} could not be fetched"
            )
        if consecutive >= self.options.max_consecutive_failures:
            raise SourceUnreachableError(
                f"{self.options.source_id}: {consecutive} consecutive pages failed "
                f"(last {page.number})"
            )

    def _process_page(self, page: SourcePage) -> None:
        index = self._index
        if index is None:
            raise RuntimeError("catalog index not loaded")
        for record in page.records:
            self.counters.records += 1
            self._tally(self._process_record(index, record))

    def _process_record(self, index: CatalogIndex, record: RawRecord) -> RecordOutcome:
        self._transition(RunState.MATCHING)
        key = record_key(record, self.options.match, self.options.aliases)
        if not key:
            return RecordFailure(reason=FailureReason.DROPPED, vendor_sku=record.vendor_sku)
        product_key = index.lookup(key)
        if product_key is None:
            return RecordFailure(
                reason=FailureReason.UNMATCHED, vendor_sku=record.vendor_sku, detail=key
            )
        self._transition(RunState.RECONCILING)
        if record.vendor_sku in self._claimed_skus or product_key in self._claimed_products:
            log.debug("Skipping %s: %s already reconciled in this run", record.vendor_sku, key)
            outcome: RecordOutcome = RecordDecision(
                action=AuditAction.SKIP,
                vendor_sku=record.vendor_sku,
                product_key=product_key,
                new_value=self.options.transform.target(record),
                reason=SkipReason.DUPLICATE_RECORD,
            )
        else:
            outcome = self.upserter.upsert(product_key, record)
            if isinstance(outcome, RecordDecision):
                self._claimed_skus.add(record.vendor_sku)
                self._claimed_products.add(product_key)
        if isinstance(outcome, RecordDecision) and self.audit is not None:
            self.audit.record(outcome.to_audit(self.clock()))
        return outcome

    def _tally(self, outcome: RecordOutcome) -> None:
        counters = self.counters
        if isinstance(outcome, RecordFailure):
            match outcome.reason:
                case FailureReason.DROPPED:
                    counters.dropped += 1
                case FailureReason.UNMATCHED:
                    counters.unmatched += 1
                case FailureReason.PERSISTENCE:
                    counters.errors += 1
            return

        counters.deduplicated += outcome.removed_duplicates
        match outcome.action:
            case AuditAction.CREATE:
                counters.created += 1
            case AuditAction.UPDATE:
                counters.updated += 1
            case AuditAction.SKIP if outcome.reason is SkipReason.NO_COST:
                counters.skipped_no_cost += 1
            case AuditAction.SKIP if outcome.reason is SkipReason.DUPLICATE_RECORD:
                counters.duplicate_records += 1
            case AuditAction.SKIP:
                counters.already_correct += 1

    def _report_progress(self, page: SourcePage, attempted: int) -> None:
        every = self.options.progress_every
        if every <= 0 or attempted % every:
            return
        total = f"/{page.total_pages}" if page.total_pages else ""
        rate = ""
        if self.budget is not None:
            rate = f" rate={self.budget.hourly_rate():.0f}/h"
        log.info("Page %s%s: %s%s", page.number, total, self.counters.describe(), rate)

    def _transition(self, state: RunState) -> None:
        if state is not self.state:
            log.debug("%s: %s -> %s", self.options.source_id, self.state, state)
            self.state = state
            self.summary.state = state

    def _finish(self) -> None:
        self.summary.finished_at = self.clock()
        if self.budget is not None:
            self.summary.requests = self.budget.total
        if self.audit is not None:
            self.audit.close()
        elapsed = time.monotonic() - self._started_monotonic
        prefix = "Dry run summary" if self.options.dry_run else "Run summary"
        log.info("%s (%.1f s): %s", prefix, elapsed, self.summary.describe())
