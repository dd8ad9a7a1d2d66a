"""Row readers for CSV and XLSX exports."""

from __future__ import annotations

import csv
from itertools import islice
from typing import TYPE_CHECKING

from openpyxl import load_workbook

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from vendorsync.config.sources import FileFormat

XLSX_SUFFIXES = frozenset({".xlsx", ".xlsm"})


def detect_format(path: Path, declared: FileFormat = "auto") -> FileFormat:
    if declared != "auto":
        return declared
    return "xlsx" if path.suffix.lower() in XLSX_SUFFIXES else "csv"


def read_csv_rows(
    path: Path,
    *,
    skip_rows: int = 0,
    delimiter: str = ",",
    encoding: str = "utf-8-sig",
) -> Iterator[list[object]]:
    with path.open(newline="", encoding=encoding) as handle:
        reader = csv.reader(handle, delimiter=delimiter)
        for row in islice(reader, skip_rows, None):
            yield list(row)


def read_xlsx_rows(
    path: Path,
    *,
    skip_rows: int = 0,
    sheet_name: str | None = None,
) -> Iterator[list[object]]:
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        sheet = workbook[sheet_name] if sheet_name else workbook.active
        if sheet is None:
            return
        for row in sheet.iter_rows(min_row=skip_rows + 1, values_only=True):
            yield list(row)
    finally:
        workbook.close()


def is_blank(row: list[object]) -> bool:
    return all(value is None or not str(value).strip() for value in row)
