from __future__ import annotations

import asyncio
from collections.abc import Callable  # noqa: TC003
from decimal import Decimal
from typing import Any

import httpx
import pytest

from tests.helpers.fakes import FakeClock
from vendorsync.adapters.http_resilience import ResilientClient
from vendorsync.adapters.vendor_api import (
    ApiKeyAuth,
    OAuth2ClientCredentials,
    PaginatedApiSource,
    parse_item,
)
from vendorsync.config import (
    ApiKeyCredentials,
    ApiSourceConfig,
    OAuthCredentials,
    ResilienceConfig,
    RetryPolicy,
)
from vendorsync.domain.errors import VendorAuthError
from vendorsync.domain.ingestion import RequestBudget
from vendorsync.domain.ports import RequestGate, SourcePage

BASE_URL = "https://api.acme.test"
FIELDS = {
    "vendor_sku": "sku",
    "brand": "attributes.brand",
    "part_number": "attributes.mpn",
    "cost": "price",
    "inventory_qty": "stock",
}

Handler = Callable[[httpx.Request], httpx.Response]


def _item(number: int) -> dict[str, Any]:
    return {
        "sku": f"A{number}",
        "attributes": {"brand": "Acme", "mpn": f"{number}"},
        "price": f"${number},000.50",
        "stock": {"east": number, "west": "2"},
    }


def _client_factory(handler: Handler) -> Callable[..., ResilientClient]:
    def factory(
        resilience: ResilienceConfig,
        *,
        budget: RequestGate | None = None,
        auth: httpx.Auth | None = None,
    ) -> ResilientClient:
        return ResilientClient(
            resilience, budget=budget, auth=auth, transport=httpx.MockTransport(handler)
        )

    return factory


def _source(
    handler: Handler,
    *,
    page_size: int = 2,
    auth: httpx.Auth | None = None,
    budget: RequestBudget | None = None,
) -> PaginatedApiSource:
    return PaginatedApiSource(
        config=ApiSourceConfig(base_url=BASE_URL, page_size=page_size, fields=FIELDS),
        resilience=ResilienceConfig(
            name="acme",
            base_url=BASE_URL,
            retry=RetryPolicy(total=2, backoff_factor=0, backoff_jitter=0),
        ),
        auth=auth,
        budget=budget,
        client_factory=_client_factory(handler),
    )


def _collect(source: PaginatedApiSource, start_page: int = 1) -> list[SourcePage]:
    async def scenario() -> list[SourcePage]:
        return [page async for page in source.pages(start_page=start_page)]

    return asyncio.run(scenario())


def _page_number(request: httpx.Request) -> int:
    return int(request.url.params["page"])


def _paged(total_pages: int, requested: list[int]) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        number = _page_number(request)
        requested.append(number)
        items = [_item(number * 10 + offset) for offset in range(2)]
        return httpx.Response(
            200, json={"data": items, "meta": {"total_pages": total_pages, "total_count": 6}}
        )

    return handler


def test_pages_until_reported_total() -> None:
    requested: list[int] = []
    budget = RequestBudget()

    pages = _collect(_source(_paged(3, requested), budget=budget))

    assert [page.number for page in pages] == [1, 2, 3]
    assert requested == [1, 2, 3]
    assert all(page.total_pages == 3 for page in pages)
    assert budget.total == 3
    record = pages[0].records[0]
    assert record.vendor_sku == "A10"
    assert (record.brand, record.part_number) == ("Acme", "10")
    assert record.cost == Decimal("10000.50")
    assert record.inventory_qty == 12


def test_resume_starts_at_requested_page() -> None:
    requested: list[int] = []

    pages = _collect(_source(_paged(3, requested)), start_page=2)

    assert [page.number for page in pages] == [2, 3]
    assert requested == [2, 3]


def test_open_ended_listing_stops_on_short_page() -> None:
    requested: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        number = _page_number(request)
        requested.append(number)
        count = 2 if number == 1 else 1
        return httpx.Response(200, json={"data": [_item(n) for n in range(count)]})

    pages = _collect(_source(handler))

    assert requested == [1, 2]
    assert [len(page.records) for page in pages] == [2, 1]
    assert pages[0].total_pages is None


def test_open_ended_listing_stops_on_not_found() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if _page_number(request) > 1:
            return httpx.Response(404, json={"error": "no such page"})
        return httpx.Response(200, json={"data": [_item(1), _item(2)]})

    pages = _collect(_source(handler))

    assert [page.number for page in pages] == [1]
    assert not pages[0].failed


def _ends_after(last_page: int, requested: list[int]) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        number = _page_number(request)
        requested.append(number)
        if number > last_page:
            return httpx.Response(404)
        return httpx.Response(200, json={"data": [_item(number), _item(number + 10)]})

    return handler


def test_resume_past_end_of_open_ended_listing_yields_nothing() -> None:
    requested: list[int] = []

    pages = _collect(_source(_ends_after(2, requested)), start_page=3)

    assert pages == []
    assert requested == [3]


def test_not_found_on_first_page_is_a_failed_page() -> None:
    requested: list[int] = []

    pages = _collect(_source(_ends_after(0, requested)))

    assert [(page.number, page.failed) for page in pages] == [(1, True)]
    assert requested == [1, 2]


def test_page_failing_after_retries_is_reported_and_skipped() -> None:
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        number = _page_number(request)
        attempts.append(number)
        if number == 2:
            return httpx.Response(503)
        return httpx.Response(200, json={"data": [_item(number)], "meta": {"total_pages": 3}})

    budget = RequestBudget()
    pages = _collect(_source(handler, budget=budget))

    assert [(page.number, page.failed) for page in pages] == [(1, False), (2, True), (3, False)]
    assert attempts.count(2) > 1
    assert budget.total == len(attempts)


def test_malformed_payload_is_a_failed_page() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if _page_number(request) == 1:
            return httpx.Response(200, json={"data": "oops", "meta": {"total_pages": 2}})
        return httpx.Response(200, json={"data": [_item(2)], "meta": {"total_pages": 2}})

    pages = _collect(_source(handler))

    assert pages[0].failed
    assert pages[0].total_pages is None
    assert pages[1].records[0].vendor_sku == "A2"


@pytest.mark.parametrize("status", [401, 403])
def test_rejected_credentials_are_fatal(status: int) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(status)

    with pytest.raises(VendorAuthError):
        _collect(_source(handler))


def _credentials(**kwargs: Any) -> OAuthCredentials:
    return OAuthCredentials(
        token_url=f"{BASE_URL}/v1/token", client_id="client", client_secret="s3cret", **kwargs
    )


def test_oauth_token_is_fetched_once_and_counted_against_budget() -> None:
    tokens: list[bytes] = []
    seen_auth: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/token":
            tokens.append(request.content)
            return httpx.Response(200, json={"access_token": "tok-1", "expires_in": 3600})
        seen_auth.append(request.headers.get("Authorization"))
        return _paged(2, [])(request)

    budget = RequestBudget()
    auth = OAuth2ClientCredentials(_credentials())

    pages = _collect(_source(handler, auth=auth, budget=budget))

    assert len(pages) == 2
    assert len(tokens) == 1
    assert seen_auth == ["Bearer tok-1", "Bearer tok-1"]
    assert budget.total == 3


def test_oauth_token_request_carries_client_credentials() -> None:
    bodies: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/token":
            bodies.append(request.content)
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        return httpx.Response(200)

    async def scenario() -> None:
        async with httpx.AsyncClient(
            auth=OAuth2ClientCredentials(_credentials()),
            transport=httpx.MockTransport(handler),
        ) as client:
            await client.get(f"{BASE_URL}/v1/items")

    asyncio.run(scenario())

    [body] = bodies
    assert b'"grant_type":"client_credentials"' in body.replace(b" ", b"")
    assert b"s3cret" in body


def test_oauth_token_is_refreshed_before_expiry() -> None:
    clock = FakeClock()
    issued: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/token":
            issued.append(f"tok-{len(issued) + 1}")
            return httpx.Response(200, json={"access_token": issued[-1], "expires_in": 100})
        return httpx.Response(200, json={"auth": request.headers["Authorization"]})

    async def scenario() -> list[str]:
        seen: list[str] = []
        async with httpx.AsyncClient(
            auth=OAuth2ClientCredentials(_credentials(refresh_margin_seconds=60), clock=clock),
            transport=httpx.MockTransport(handler),
        ) as client:
            for elapsed in (0, 30, 15):
                clock.advance(elapsed)
                response = await client.get(f"{BASE_URL}/v1/items")
                seen.append(response.json()["auth"])
        return seen

    seen = asyncio.run(scenario())

    assert seen == ["Bearer tok-1", "Bearer tok-1", "Bearer tok-2"]


def test_oauth_rejected_token_is_replaced_once() -> None:
    issued: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/token":
            issued.append(f"tok-{len(issued) + 1}")
            return httpx.Response(200, json={"access_token": issued[-1]})
        if request.headers["Authorization"] == "Bearer tok-1":
            return httpx.Response(401)
        return httpx.Response(200, json={"data": [_item(1)], "meta": {"total_pages": 1}})

    pages = _collect(_source(handler, auth=OAuth2ClientCredentials(_credentials())))

    assert issued == ["tok-1", "tok-2"]
    assert pages[0].records[0].vendor_sku == "A1"


def test_oauth_token_failure_is_fatal() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/token":
            return httpx.Response(400, json={"error": "invalid_client"})
        return httpx.Response(200)

    with pytest.raises(VendorAuthError):
        _collect(_source(handler, auth=OAuth2ClientCredentials(_credentials())))


def test_api_key_is_sent_with_prefix() -> None:
    headers: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        headers.append(request.headers.get("Authorization"))
        return httpx.Response(200, json={"data": [], "meta": {"total_pages": 1}})

    auth = ApiKeyAuth(ApiKeyCredentials(header="Authorization", value="k-123", prefix="Token"))
    _collect(_source(handler, auth=auth))

    assert headers == ["Token k-123"]


def test_parse_item_falls_back_to_code_for_sku() -> None:
    record = parse_item(
        {"code": '="RCS800110"', "cost": 12, "qty": [{"a": 1}, {"b": "4"}]},
        {"code": "code", "cost": "cost", "inventory_qty": "qty"},
    )

    assert record is not None
    assert record.vendor_sku == "RCS800110"
    assert record.code == "RCS800110"
    assert record.cost == Decimal(12)
    assert record.inventory_qty == 5


def test_parse_item_without_identifiers_is_skipped() -> None:
    assert parse_item({"price": 3}, {"cost": "price", "vendor_sku": "sku"}) is None
