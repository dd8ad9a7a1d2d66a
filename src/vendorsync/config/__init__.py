"""Application configuration helpers."""

from __future__ import annotations

from vendorsync.common.logging import configure_logging

from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, RequestBudgetConfig, ResilienceConfig, RetryPolicy
from .sources import ApiKeyCredentials, ApiSourceConfig, FileSourceConfig, OAuthCredentials
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .vendors import RunConfig, load_run_config, parse_run_config

__all__ = [
    "ApiKeyCredentials",
    "ApiSourceConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "FileSourceConfig",
    "MissingConfigurationError",
    "OAuthCredentials",
    "RateLimit",
    "RequestBudgetConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "RunConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_storage_config",
    "load_run_config",
    "parse_run_config",
    "require_env_vars",
]
