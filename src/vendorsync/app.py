"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Callable
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from vendorsync.adapters.audit_log import CsvAuditLog
from vendorsync.adapters.checkpoint_store import JsonCheckpointStore
from vendorsync.adapters.flat_file import FlatFileSource
from vendorsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    is_started,
    startup,
)
from vendorsync.adapters.vendor_api import (
    ApiKeyAuth,
    OAuth2ClientCredentials,
    PaginatedApiSource,
)
from vendorsync.config import (
    ApiKeyCredentials,
    ApiSourceConfig,
    OAuthCredentials,
    get_storage_config,
)
from vendorsync.domain.ingestion import IngestionRun, RequestBudget
from vendorsync.domain.ports.unit_of_work import ReconciliationUnitOfWork

if TYPE_CHECKING:
    import httpx

    from vendorsync.config import RequestBudgetConfig, RunConfig, StorageConfig
    from vendorsync.config.sources import Credentials
    from vendorsync.domain.ingestion import RunSummary
    from vendorsync.domain.model import IngestionCursor
    from vendorsync.domain.ports import AuditSink, CheckpointStore, SourceAdapter

UnitOfWorkFactory = Callable[[], ReconciliationUnitOfWork]


log = getLogger(__name__)


def build_auth(credentials: Credentials | None) -> httpx.Auth | None:
    if isinstance(credentials, OAuthCredentials):
        return OAuth2ClientCredentials(credentials)
    if isinstance(credentials, ApiKeyCredentials):
        return ApiKeyAuth(credentials)
    return None


def build_budget(config: RequestBudgetConfig) -> RequestBudget:
    return RequestBudget(
        min_interval=config.min_delay_seconds,
        max_per_window=config.max_requests_per_hour,
    )


def build_source(config: RunConfig, *, budget: RequestBudget | None = None) -> SourceAdapter:
    if isinstance(config.source, ApiSourceConfig):
        return PaginatedApiSource(
            config=config.source,
            resilience=config.resilience,
            auth=build_auth(config.credentials),
            budget=budget,
        )
    return FlatFileSource(config=config.source)


def _default_unit_of_work_factory() -> UnitOfWorkFactory:
    if not is_started():
        startup()
    return SqlAlchemyReconciliationUnitOfWork


def sync_vendor(
    config: RunConfig,
    *,
    dry_run: bool = False,
    max_pages: int | None = None,
    restart: bool = False,
    storage: StorageConfig | None = None,
    source: SourceAdapter | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    checkpoints: CheckpointStore | None = None,
    audit: AuditSink | None = None,
) -> RunSummary:
    """Run one vendor through ingestion and reconciliation."""

    storage_config = storage or get_storage_config()
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    effective_checkpoints = checkpoints or JsonCheckpointStore(storage_config.checkpoint_dir())
    if restart:
        log.info("Discarding saved checkpoint for %s", config.source_id)
        effective_checkpoints.delete(config.source_id)

    budget = build_budget(config.budget)
    effective_source = source or build_source(config, budget=budget)
    started_at = datetime.now(tz=UTC)
    effective_audit = audit or CsvAuditLog.for_run(
        storage_config.audit_dir(), config.source_id, started_at
    )
    options = dataclasses.replace(config.options, dry_run=dry_run, max_pages=max_pages)

    log.info(
        "Starting %s sync: vendor_id=%s, dry_run=%s, max_pages=%s",
        config.name or config.source_id,
        config.vendor_id,
        dry_run,
        max_pages,
    )
    run = IngestionRun(
        options=options,
        source=effective_source,
        unit_of_work_factory=effective_uow,
        checkpoints=effective_checkpoints,
        audit=effective_audit,
        budget=budget,
    )
    return asyncio.run(run.execute())


def reset_vendor(
    config: RunConfig,
    *,
    storage: StorageConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    checkpoints: CheckpointStore | None = None,
) -> int:
    """Delete every vendor fact of ``config``'s vendor and its saved checkpoint."""

    storage_config = storage or get_storage_config()
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    effective_checkpoints = checkpoints or JsonCheckpointStore(storage_config.checkpoint_dir())

    with effective_uow() as uow:
        removed = uow.repositories.vendor_facts.delete_for_vendor(config.vendor_id)
        uow.commit()
    effective_checkpoints.delete(config.source_id)
    log.info("Removed %s vendor facts for vendor %s", removed, config.vendor_id)
    return removed


def checkpoint_status(
    config: RunConfig,
    *,
    storage: StorageConfig | None = None,
    checkpoints: CheckpointStore | None = None,
) -> IngestionCursor | None:
    """Return the saved cursor of ``config``'s source, if a run left one behind."""

    storage_config = storage or get_storage_config()
    effective_checkpoints = checkpoints or JsonCheckpointStore(
        storage_config.checkpoint_dir(ensure=False)
    )
    return effective_checkpoints.load(config.source_id)
