"""Port for recording reconciliation decisions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from vendorsync.domain.model import AuditRecord


@runtime_checkable
class AuditSink(Protocol):
    def record(self, entry: AuditRecord) -> None: ...

    def close(self) -> None: ...
