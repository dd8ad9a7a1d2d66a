"""Ingestion engine: request budget, checkpoints and the run loop."""

from __future__ import annotations

from vendorsync.domain.ingestion.checkpoint import CheckpointManager
from vendorsync.domain.ingestion.rate_limit import RequestBudget
from vendorsync.domain.ingestion.runner import IngestionRun, RunOptions, RunSummary

__all__ = ["CheckpointManager", "IngestionRun", "RequestBudget", "RunOptions", "RunSummary"]
