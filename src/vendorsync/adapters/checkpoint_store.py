"""Checkpoint stores: one JSON document per source, or an in-memory dict."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, ValidationError

from vendorsync.config.storage import safe_filename
from vendorsync.domain.errors import CheckpointError
from vendorsync.domain.model import IngestionCursor

if TYPE_CHECKING:
    from pathlib import Path

    from vendorsync.domain.ports import CheckpointStore

log = logging.getLogger(__name__)


class CursorDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    source_id: str
    position: int
    counters: dict[str, int] = {}
    timestamp: datetime

    @classmethod
    def from_cursor(cls, cursor: IngestionCursor) -> CursorDocument:
        return cls(
            source_id=cursor.source_id,
            position=cursor.position,
            counters=dict(cursor.counters),
            timestamp=cursor.timestamp,
        )

    def to_cursor(self) -> IngestionCursor:
        return IngestionCursor(
            source_id=self.source_id,
            position=self.position,
            counters=dict(self.counters),
            timestamp=self.timestamp,
        )


class JsonCheckpointStore:
    """Stores ``<source_id>.checkpoint.json`` files, replaced atomically on save."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, source_id: str) -> Path:
        return self.directory / f"{safe_filename(source_id)}.checkpoint.json"

    def load(self, source_id: str) -> IngestionCursor | None:
        path = self.path_for(source_id)
        try:
            payload = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            document = CursorDocument.model_validate_json(payload)
        except ValidationError as exc:
            raise CheckpointError(f"Checkpoint {path} is corrupt: {exc}") from exc
        if document.source_id != source_id:
            raise CheckpointError(
                f"Checkpoint {path} belongs to {document.source_id!r}, not {source_id!r}"
            )
        return document.to_cursor()

    def save(self, cursor: IngestionCursor) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(cursor.source_id)
        temporary = path.with_suffix(".tmp")
        temporary.write_text(
            CursorDocument.from_cursor(cursor).model_dump_json(indent=2), encoding="utf-8"
        )
        os.replace(temporary, path)

    def delete(self, source_id: str) -> None:
        self.path_for(source_id).unlink(missing_ok=True)


class InMemoryCheckpointStore:
    def __init__(self) -> None:
        self.cursors: dict[str, IngestionCursor] = {}
        self.saves = 0

    def load(self, source_id: str) -> IngestionCursor | None:
        return self.cursors.get(source_id)

    def save(self, cursor: IngestionCursor) -> None:
        self.cursors[cursor.source_id] = cursor
        self.saves += 1

    def delete(self, source_id: str) -> None:
        self.cursors.pop(source_id, None)


if TYPE_CHECKING:
    _json_check: CheckpointStore = JsonCheckpointStore(directory=None)  # type: ignore[arg-type]
    _memory_check: CheckpointStore = InMemoryCheckpointStore()
