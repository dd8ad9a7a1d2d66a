"""Source locators and credentials for vendor adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Final, Literal

if TYPE_CHECKING:
    from collections.abc import Mapping

LOGICAL_FIELDS: Final[tuple[str, ...]] = (
    "vendor_sku",
    "brand",
    "part_number",
    "vendor_code",
    "code",
    "cost",
    "inventory_qty",
    "inventory_text",
)

FileFormat = Literal["auto", "csv", "xlsx"]


@dataclass(frozen=True, slots=True)
class ApiSourceConfig:
    """Paginated REST source; ``fields`` maps logical fields to dotted item paths."""

    base_url: str
    items_path: str = "/v1/items"
    page_param: str = "page"
    page_size: int = 100
    params: Mapping[str, str] = field(default_factory=dict[str, str])
    fields: Mapping[str, str] = field(default_factory=dict[str, str])


@dataclass(frozen=True, slots=True)
class FileSourceConfig:
    """Local CSV/XLSX exports read in order."""

    paths: tuple[Path, ...]
    format: FileFormat = "auto"
    header_aliases: Mapping[str, tuple[str, ...]] | None = None
    custom_headers: tuple[str, ...] | None = None
    skip_rows: int = 0
    delimiter: str = ","
    encoding: str = "utf-8-sig"
    sheet_name: str | None = None
    derive_code_from: tuple[str, str] | None = ("vendor_code", "part_number")
    page_size: int = 500


@dataclass(frozen=True, slots=True)
class OAuthCredentials:
    token_url: str
    client_id: str
    client_secret: str = field(repr=False)
    refresh_margin_seconds: float = 60.0


@dataclass(frozen=True, slots=True)
class ApiKeyCredentials:
    header: str
    value: str = field(repr=False)
    prefix: str = ""


type SourceConfig = ApiSourceConfig | FileSourceConfig
type Credentials = OAuthCredentials | ApiKeyCredentials
