"""Catalog-side value objects used for matching."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """A canonical product as seen by the matcher.

    ``codes`` holds vendor-specific code formats keyed by namespace (for example
    ``{"turn14": "RCS800110"}``).
    """

    product_key: str
    brand: str | None = None
    part_number: str | None = None
    codes: Mapping[str, str] = field(default_factory=dict[str, str])


@dataclass(frozen=True, slots=True)
class IdentifierAlias:
    """Brand-name variant pointing at a canonical brand."""

    alias: str
    canonical: str
    site_prefix: str | None = None
