"""Paginated vendor API source."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from vendorsync.adapters.http_resilience import ResilientClient
from vendorsync.domain.errors import VendorAuthError
from vendorsync.domain.ports import SourcePage

from .schema import ItemsPage
from .translator import parse_item

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from vendorsync.config.http_resilience import ResilienceConfig
    from vendorsync.config.sources import ApiSourceConfig
    from vendorsync.domain.model import RawRecord
    from vendorsync.domain.ports import RequestGate

log = getLogger(__name__)

_AUTH_FAILURES = frozenset({httpx.codes.UNAUTHORIZED, httpx.codes.FORBIDDEN})


def _default_client_factory(
    config: ResilienceConfig,
    *,
    budget: RequestGate | None = None,
    auth: httpx.Auth | None = None,
) -> ResilientClient:
    return ResilientClient(config, budget=budget, auth=auth)


@dataclass(slots=True)
class PaginatedApiSource:
    """One GET per page until ``total_pages`` is reached or a short page arrives."""

    config: ApiSourceConfig
    resilience: ResilienceConfig
    auth: httpx.Auth | None = None
    budget: RequestGate | None = None
    client_factory: Callable[..., ResilientClient] = field(default=_default_client_factory)

    async def pages(self, *, start_page: int = 1) -> AsyncIterator[SourcePage]:
        page = max(start_page, 1)
        total_pages: int | None = None
        async with self.client_factory(self.resilience, budget=self.budget, auth=self.auth) as client:
            while total_pages is None or page <= total_pages:
                try:
                    payload = await self._request_page(
                        client, page, open_ended=total_pages is None and page > 1
                    )
                except (httpx.HTTPError, ValidationError, ValueError) as exc:
                    log.warning("Page %s of %s failed: %s", page, self.resilience.name, exc)
                    yield SourcePage(number=page, total_pages=total_pages, failed=True)
                    page += 1
                    continue
                if payload is None:
                    return

                if payload.total_pages is not None:
                    if total_pages is None and payload.meta and payload.meta.total_count:
                        log.info(
                            "%s reports %s items on %s pages",
                            self.resilience.name,
                            payload.meta.total_count,
                            payload.total_pages,
                        )
                    total_pages = payload.total_pages

                records = self._translate(payload)
                yield SourcePage(number=page, records=records, total_pages=total_pages)

                if total_pages is None and len(payload.data) < self.config.page_size:
                    return
                page += 1

    async def _request_page(
        self, client: ResilientClient, page: int, *, open_ended: bool
    ) -> ItemsPage | None:
        """Fetch one page; ``None`` means a 404 past the end of an open-ended listing."""

        params: dict[str, str | int] = dict(self.config.params)
        params[self.config.page_param] = page
        response = await client.get(self.config.items_path, params=httpx.QueryParams(params))
        if response.status_code in _AUTH_FAILURES:
            raise VendorAuthError(
                f"{self.resilience.name} rejected credentials with HTTP {response.status_code}"
            )
        if open_ended and response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        return ItemsPage.model_validate(response.json())

    def _translate(self, payload: ItemsPage) -> tuple[RawRecord, ...]:
        records: list[RawRecord] = []
        for item in payload.data:
            record = parse_item(item, self.config.fields)
            if record is None:
                log.debug("Skipping item without identifiers: %s", item.get("id"))
                continue
            records.append(record)
        return tuple(records)

