"""Identifier normalization and value coercion for raw vendor data.

Every function here is pure. Keys produced by :func:`normalize_key` and
:func:`normalize_code` are the only currency the matcher understands: upper-case
ASCII letters and digits, nothing else.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from vendorsync.domain.model import IdentifierAlias

if TYPE_CHECKING:
    from collections.abc import Iterable

log = logging.getLogger(__name__)

_LEADING_FORMULA = re.compile(r'^=\s*"?')
_TRAILING_QUOTE = re.compile(r'"$')
_NON_KEY_CHARS = re.compile(r"[^A-Z0-9]")
_NUMBER_NOISE = re.compile(r"[\s$,]")


def strip_quoting(value: object) -> str:
    """Remove spreadsheet text-forcing artifacts such as ``="800110"``."""

    if value is None:
        return ""
    text = str(value).strip()
    text = _LEADING_FORMULA.sub("", text)
    return _TRAILING_QUOTE.sub("", text).strip()


def normalize_code(value: object) -> str:
    """Strip quoting, upper-case and drop everything outside ``[A-Z0-9]``."""

    return _NON_KEY_CHARS.sub("", strip_quoting(value).upper())


@dataclass(slots=True)
class AliasTable:
    """Brand aliases keyed by their normalized form."""

    _canonical: dict[str, str] = field(default_factory=dict[str, str])
    _prefixes: dict[str, str] = field(default_factory=dict[str, str])

    @classmethod
    def from_aliases(cls, aliases: Iterable[IdentifierAlias]) -> AliasTable:
        table = cls()
        for alias in aliases:
            table.add(alias)
        return table

    def add(self, alias: IdentifierAlias) -> None:
        canonical = normalize_code(alias.canonical)
        for name in (alias.alias, alias.canonical):
            key = normalize_code(name)
            if not key:
                continue
            current = self._canonical.setdefault(key, canonical)
            if current != canonical:
                log.warning(
                    "Alias %r already resolves to %s; ignoring mapping to %s",
                    name,
                    current,
                    canonical,
                )
        if alias.site_prefix:
            prefix = strip_quoting(alias.site_prefix)
            self._prefixes[normalize_code(alias.alias)] = prefix
            self._prefixes.setdefault(canonical, prefix)

    def resolve(self, brand: object) -> str:
        """Return the canonical form of ``brand``; unknown brands pass through."""

        key = normalize_code(brand)
        return self._canonical.get(key, key)

    def site_prefix(self, brand: object) -> str | None:
        key = normalize_code(brand)
        prefix = self._prefixes.get(key)
        if prefix is None:
            prefix = self._prefixes.get(self.resolve(brand))
        return prefix

    def __len__(self) -> int:
        return len(self._canonical)


_EMPTY_ALIASES = AliasTable()


def normalize_key(brand: object, part: object, aliases: AliasTable | None = None) -> str:
    """Build the ``canonical_brand + normalized_part`` key.

    A missing brand or part yields ``""``; callers drop such records.
    """

    table = aliases or _EMPTY_ALIASES
    canonical_brand = table.resolve(brand)
    normalized_part = normalize_code(part)
    if not canonical_brand or not normalized_part:
        return ""
    return canonical_brand + normalized_part


def derive_code(vendor_code: object, part_number: object) -> str:
    """Compose a vendor code from its two halves, or ``""`` when either is missing."""

    head = strip_quoting(vendor_code)
    tail = strip_quoting(part_number)
    if not head or not tail:
        return ""
    return head + tail


def clean_text(value: object) -> str | None:
    text = strip_quoting(value)
    return text or None


def parse_cost(value: object) -> Decimal | None:
    """Parse a price cell such as ``"$1,234.50"``; blank or garbage becomes ``None``."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int | float):
        return Decimal(str(value))
    text = _NUMBER_NOISE.sub("", strip_quoting(value))
    if not text:
        return None
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def parse_quantity(value: object) -> int | None:
    """Parse an inventory value; mappings of location to quantity are summed."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, dict):
        total = 0
        seen = False
        for item in value.values():  # pyright: ignore[reportUnknownVariableType]
            quantity = parse_quantity(item)
            if quantity is not None:
                total += quantity
                seen = True
        return total if seen else None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    cost = parse_cost(value)
    return int(cost) if cost is not None else None

