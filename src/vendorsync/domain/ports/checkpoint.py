"""Port for persisting ingestion cursors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from vendorsync.domain.model import IngestionCursor


@runtime_checkable
class CheckpointStore(Protocol):
    def load(self, source_id: str) -> IngestionCursor | None: ...

    def save(self, cursor: IngestionCursor) -> None: ...

    def delete(self, source_id: str) -> None: ...
