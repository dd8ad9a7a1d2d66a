"""Run bookkeeping: counters and the resumable cursor."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(slots=True)
class RunCounters:
    pages: int = 0
    pages_failed: int = 0
    records: int = 0
    created: int = 0
    updated: int = 0
    skipped_no_cost: int = 0
    already_correct: int = 0
    unmatched: int = 0
    dropped: int = 0
    errors: int = 0
    deduplicated: int = 0
    duplicate_records: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, int]) -> RunCounters:
        known = {item.name for item in fields(cls)}
        return cls(**{name: int(value) for name, value in data.items() if name in known})

    def describe(self) -> str:
        return " ".join(f"{name}={value}" for name, value in self.as_dict().items())


@dataclass(frozen=True, slots=True)
class IngestionCursor:
    """Last fully processed page of a source plus the counters at that point."""

    source_id: str
    position: int
    counters: Mapping[str, int] = field(default_factory=dict[str, int])
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
