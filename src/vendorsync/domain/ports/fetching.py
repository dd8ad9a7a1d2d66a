"""Ports for fetching raw vendor records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from vendorsync.domain.model import RawRecord


@dataclass(frozen=True, slots=True)
class SourcePage:
    """One page of raw records.

    ``failed`` pages carry no records; the transport already retried them.
    """

    number: int
    records: tuple[RawRecord, ...] = ()
    total_pages: int | None = None
    failed: bool = False


@runtime_checkable
class SourceAdapter(Protocol):
    """Lazy, finite, restartable sequence of pages."""

    def pages(self, *, start_page: int = 1) -> AsyncIterator[SourcePage]: ...


@runtime_checkable
class RequestGate(Protocol):
    """Something every outbound request has to pass before it is sent."""

    async def acquire(self) -> None: ...


__all__ = ["RequestGate", "SourceAdapter", "SourcePage"]
