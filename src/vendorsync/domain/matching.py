"""Catalog matching: one key index per run, constant-time lookups."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from vendorsync.domain.model import MatchStrategy
from vendorsync.domain.normalization import (
    AliasTable,
    derive_code,
    normalize_code,
    normalize_key,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from vendorsync.domain.model import CatalogEntry, RawRecord

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MatchConfig:
    strategy: MatchStrategy = MatchStrategy.BRAND_PART
    code_namespace: str | None = None
    trailing_separators: str = "-"
    derive_codes: bool = True


def catalog_keys(entry: CatalogEntry, config: MatchConfig, aliases: AliasTable) -> list[str]:
    """Return every normalized key ``entry`` can be reached by."""

    if config.strategy is MatchStrategy.BRAND_PART:
        key = normalize_key(entry.brand, entry.part_number, aliases)
        return [key] if key else []

    keys: list[str] = []
    if config.code_namespace is not None:
        code = normalize_code(entry.codes.get(config.code_namespace))
        if code:
            keys.append(code)
    prefix = aliases.site_prefix(entry.brand) if entry.brand else None
    if prefix and entry.part_number:
        prefixed = normalize_code(prefix + str(entry.part_number))
        if prefixed and prefixed not in keys:
            keys.append(prefixed)
    return keys


def record_key(record: RawRecord, config: MatchConfig, aliases: AliasTable) -> str:
    """Return the lookup key for ``record``, or ``""`` when it cannot have one."""

    if config.strategy is MatchStrategy.BRAND_PART:
        return normalize_key(record.brand, record.part_number, aliases)
    code = record.code
    if not code and config.derive_codes:
        code = derive_code(record.vendor_code, record.part_number)
    return normalize_code(code)


def preferred_product_key(current: str, candidate: str, *, separators: str = "-") -> str:
    """Pick the winner of a key collision between two product keys.

    Keys without a trailing separator beat keys with one, then the shorter key
    wins. On a full tie ``current`` (the first one seen) is kept.
    """

    def rank(product_key: str) -> tuple[bool, int]:
        incomplete = bool(separators) and product_key.rstrip().endswith(tuple(separators))
        return incomplete, len(product_key)

    return candidate if rank(candidate) < rank(current) else current


@dataclass(slots=True)
class CatalogIndex:
    """``normalized_key -> product_key`` after tie-breaking."""

    keys: dict[str, str] = field(default_factory=dict[str, str])
    entries: int = 0
    collisions: int = 0

    def lookup(self, key: str) -> str | None:
        if not key:
            return None
        return self.keys.get(key)

    def __len__(self) -> int:
        return len(self.keys)


def build_catalog_index(
    entries: Iterable[CatalogEntry],
    *,
    config: MatchConfig,
    aliases: AliasTable | None = None,
) -> CatalogIndex:
    table = aliases or AliasTable()
    index = CatalogIndex()
    for entry in entries:
        index.entries += 1
        for key in catalog_keys(entry, config, table):
            existing = index.keys.get(key)
            if existing is None:
                index.keys[key] = entry.product_key
                continue
            if existing == entry.product_key:
                continue
            index.collisions += 1
            winner = preferred_product_key(
                existing, entry.product_key, separators=config.trailing_separators
            )
            log.debug(
                "Key collision on %s between %s and %s; keeping %s",
                key,
                existing,
                entry.product_key,
                winner,
            )
            index.keys[key] = winner

    if index.collisions:
        log.info(
            "Catalog index built: %s entries, %s keys, %s collisions resolved",
            index.entries,
            len(index.keys),
            index.collisions,
        )
    else:
        log.info("Catalog index built: %s entries, %s keys", index.entries, len(index.keys))
    return index
