"""Adapter for paginated vendor REST APIs."""

from __future__ import annotations

from .auth import ApiKeyAuth, OAuth2ClientCredentials
from .source import PaginatedApiSource
from .translator import extract, parse_item

__all__ = ["ApiKeyAuth", "OAuth2ClientCredentials", "PaginatedApiSource", "extract", "parse_item"]
