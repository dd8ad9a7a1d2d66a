"""``httpx.Auth`` flows for vendor APIs.

Token requests go through the same transport as data requests, so they count
against the vendor's request budget and get the same retries.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from vendorsync.domain.errors import VendorAuthError

from .schema import TokenResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from vendorsync.config.sources import ApiKeyCredentials, OAuthCredentials

log = logging.getLogger(__name__)


class OAuth2ClientCredentials(httpx.Auth):
    """Bearer token via the client-credentials grant, refreshed ahead of expiry."""

    requires_response_body = True

    def __init__(
        self,
        credentials: OAuthCredentials,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.credentials = credentials
        self._clock = clock
        self._access_token: str | None = None
        self._expires_at = 0.0

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        if not self._token_valid():
            token_response = yield self._token_request()
            self._store_token(token_response)
        request.headers["Authorization"] = f"Bearer {self._access_token}"
        response = yield request

        if response.status_code == httpx.codes.UNAUTHORIZED:
            log.info("Access token rejected; requesting a new one")
            token_response = yield self._token_request()
            self._store_token(token_response)
            request.headers["Authorization"] = f"Bearer {self._access_token}"
            yield request

    def _token_valid(self) -> bool:
        if self._access_token is None:
            return False
        return self._clock() < self._expires_at - self.credentials.refresh_margin_seconds

    def _token_request(self) -> httpx.Request:
        return httpx.Request(
            "POST",
            self.credentials.token_url,
            json={
                "grant_type": "client_credentials",
                "client_id": self.credentials.client_id,
                "client_secret": self.credentials.client_secret,
            },
        )

    def _store_token(self, response: httpx.Response) -> None:
        if response.status_code != httpx.codes.OK:
            self._access_token = None
            raise VendorAuthError(f"Token request failed with HTTP {response.status_code}")
        try:
            token = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise VendorAuthError("Token response was not understood") from exc
        self._access_token = token.access_token
        self._expires_at = self._clock() + token.expires_in
        log.debug("Obtained access token valid for %.0f s", token.expires_in)


class ApiKeyAuth(httpx.Auth):
    """Static API key sent in a header, optionally behind a scheme prefix."""

    def __init__(self, credentials: ApiKeyCredentials) -> None:
        self.credentials = credentials

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        value = self.credentials.value
        if self.credentials.prefix:
            value = f"{self.credentials.prefix} {value}"
        request.headers[self.credentials.header] = value
        yield request
