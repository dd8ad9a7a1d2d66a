"""Adapter for vendor CSV/XLSX exports."""

from __future__ import annotations

from .headers import DEFAULT_HEADER_ALIASES, HeaderLayout, resolve_headers
from .source import FlatFileSource

__all__ = ["DEFAULT_HEADER_ALIASES", "FlatFileSource", "HeaderLayout", "resolve_headers"]
