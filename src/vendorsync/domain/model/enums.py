"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class MatchStrategy(StrEnum):
    BRAND_PART = "brand_part"
    CODE = "code"


class AuditAction(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    SKIP = "SKIP"


class SkipReason(StrEnum):
    NO_COST = "no cost, not created"
    ALREADY_CORRECT = "already correct"
    DUPLICATE_RECORD = "duplicate of an earlier record"


class FailureReason(StrEnum):
    """Why a raw record produced no decision."""

    DROPPED = "dropped"
    UNMATCHED = "unmatched"
    PERSISTENCE = "persistence"


class RunState(StrEnum):
    INIT = "init"
    FETCHING = "fetching"
    MATCHING = "matching"
    RECONCILING = "reconciling"
    COMPLETE = "complete"
    STOPPED = "stopped"  # page limit reached, checkpoint kept
    INTERRUPTED = "interrupted"
    FAILED = "failed"
