"""Flat-file source: whole CSV/XLSX exports cut into fixed-size pages."""

from __future__ import annotations

import csv
import zipfile
from dataclasses import dataclass
from itertools import batched
from logging import getLogger
from typing import TYPE_CHECKING

from openpyxl.utils.exceptions import InvalidFileException

from vendorsync.domain.ports import SourcePage

from .headers import DEFAULT_HEADER_ALIASES, resolve_headers
from .readers import detect_format, is_blank, read_csv_rows, read_xlsx_rows

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path

    from vendorsync.config.sources import FileSourceConfig
    from vendorsync.domain.model import RawRecord

log = getLogger(__name__)

_UNREADABLE = (
    OSError,
    UnicodeDecodeError,
    csv.Error,
    InvalidFileException,
    zipfile.BadZipFile,
    KeyError,
)


@dataclass(slots=True)
class FlatFileSource:
    config: FileSourceConfig

    async def pages(self, *, start_page: int = 1) -> AsyncIterator[SourcePage]:
        for number, batch in enumerate(batched(self.records(), self.config.page_size), start=1):
            if number < start_page:
                continue
            yield SourcePage(number=number, records=tuple(batch))

    def records(self) -> Iterator[RawRecord]:
        for path in self.config.paths:
            yield from self._read_file(path)

    def _read_file(self, path: Path) -> Iterator[RawRecord]:
        if not path.is_file():
            log.warning("Vendor file %s not found; no records read from it", path)
            return
        count = 0
        try:
            rows = self._rows(path)
            if self.config.custom_headers is not None:
                headers: list[object] = list(self.config.custom_headers)
            else:
                first = next(rows, None)
                if first is None:
                    log.warning("Vendor file %s is empty", path)
                    return
                headers = first
            layout = resolve_headers(
                headers,
                {**DEFAULT_HEADER_ALIASES, **(self.config.header_aliases or {})},
                derive_code_from=self.config.derive_code_from,
            )
            missing = layout.missing(("cost",))
            if missing:
                log.warning("%s has no column for %s", path.name, ", ".join(missing))
            for row in rows:
                if is_blank(row):
                    continue
                record = layout.record(row)
                if record is not None:
                    count += 1
                    yield record
        except _UNREADABLE as exc:
            log.warning("Could not read %s after %s records: %s", path, count, exc)
            return
        log.info("Read %s records from %s", count, path.name)

    def _rows(self, path: Path) -> Iterator[list[object]]:
        if detect_format(path, self.config.format) == "xlsx":
            return read_xlsx_rows(
                path, skip_rows=self.config.skip_rows, sheet_name=self.config.sheet_name
            )
        return read_csv_rows(
            path,
            skip_rows=self.config.skip_rows,
            delimiter=self.config.delimiter,
            encoding=self.config.encoding,
        )
