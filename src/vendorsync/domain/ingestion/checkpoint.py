"""Checkpoint manager: periodic, forward-only persistence of the run cursor."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from vendorsync.domain.errors import CheckpointError
from vendorsync.domain.model import IngestionCursor

if TYPE_CHECKING:
    from collections.abc import Callable

    from vendorsync.domain.model import RunCounters
    from vendorsync.domain.ports import CheckpointStore

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class CheckpointManager:
    def __init__(
        self,
        store: CheckpointStore,
        source_id: str,
        *,
        every: int = 5,
        enabled: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if every < 1:
            raise ValueError("checkpoint interval must be at least one page")
        self.store = store
        self.source_id = source_id
        self.every = every
        self.enabled = enabled
        self._clock = clock
        self._cursor: IngestionCursor | None = None
        self._dirty = 0

    @property
    def cursor(self) -> IngestionCursor | None:
        return self._cursor

    def resume(self) -> IngestionCursor | None:
        cursor = self.store.load(self.source_id)
        if cursor is not None:
            log.info(
                "Resuming %s after page %s (saved %s)",
                self.source_id,
                cursor.position,
                cursor.timestamp.isoformat(timespec="seconds"),
            )
        self._cursor = cursor
        self._dirty = 0
        return cursor

    def start_page(self) -> int:
        return 1 if self._cursor is None else self._cursor.position + 1

    def advance(self, position: int, counters: RunCounters) -> None:
        """Record that ``position`` was fully processed; saves every ``every`` pages."""

        if self._cursor is not None and position < self._cursor.position:
            raise CheckpointError(
                f"cursor for {self.source_id} cannot move back from "
                f"{self._cursor.position} to {position}"
            )
        self._cursor = IngestionCursor(
            source_id=self.source_id,
            position=position,
            counters=counters.as_dict(),
            timestamp=self._clock(),
        )
        self._dirty += 1
        if self._dirty >= self.every:
            self.persist()

    def persist(self) -> None:
        if self._cursor is None or not self._dirty or not self.enabled:
            return
        self.store.save(self._cursor)
        self._dirty = 0
        log.debug("Checkpoint saved for %s at page %s", self.source_id, self._cursor.position)

    def complete(self) -> None:
        if not self.enabled:
            return
        self.store.delete(self.source_id)
        self._dirty = 0
        log.debug("Checkpoint cleared for %s", self.source_id)

    def discard(self) -> None:
        self.store.delete(self.source_id)
        self._cursor = None
        self._dirty = 0
