"""Per-vendor run configuration loaded from TOML files.

A vendor file describes everything that differs between vendors: where the
records come from, how fields are named, how brands are aliased, how prices
are transformed and how many requests the vendor tolerates. Secrets are never
stored in the file; it names the environment variables that hold them.

Example::

    [vendor]
    id = 15
    source_id = "turn14"

    [source]
    kind = "api"
    base_url = "https://api.turn14.com"
    items_path = "/v1/items"

    [source.fields]
    vendor_sku = "attributes.part_number"
    code = "attributes.mfr_part_number"
    cost = "attributes.purchase_cost"
    inventory_qty = "inventory"

    [auth]
    kind = "oauth2"
    token_path = "/v1/token"
    client_id_env = "TURN14_CLIENT_ID"
    client_secret_env = "TURN14_CLIENT_SECRET"

    [rate_limit]
    min_delay_seconds = 0.9
    max_requests_per_hour = 4000
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urljoin

from pydantic import ValidationError

from vendorsync.domain.ingestion import RunOptions
from vendorsync.domain.matching import MatchConfig
from vendorsync.domain.model import IdentifierAlias
from vendorsync.domain.normalization import AliasTable
from vendorsync.domain.reconciliation import PriceTransform

from .env import require_env_vars
from .errors import ConfigurationError
from .http_resilience import RateLimit, RequestBudgetConfig, ResilienceConfig, RetryPolicy
from .schema import (
    ApiKeySection,
    ApiSourceSection,
    OAuthSection,
    VendorDocument,
)
from .sources import (
    ApiKeyCredentials,
    ApiSourceConfig,
    FileSourceConfig,
    OAuthCredentials,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .schema import AliasGroup, FileSourceSection, RateLimitSection, RetrySection
    from .sources import Credentials, SourceConfig


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Everything one vendor run needs, built once and passed through the engine."""

    options: RunOptions
    source: SourceConfig
    resilience: ResilienceConfig
    budget: RequestBudgetConfig = field(default_factory=RequestBudgetConfig)
    credentials: Credentials | None = None
    name: str | None = None

    @property
    def vendor_id(self) -> int:
        return self.options.vendor_id

    @property
    def source_id(self) -> str:
        return self.options.source_id


def _describe(error: ValidationError) -> str:
    problems: list[str] = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        problems.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(problems)


def _api_source(section: ApiSourceSection) -> ApiSourceConfig:
    return ApiSourceConfig(
        base_url=section.base_url,
        items_path=section.items_path,
        page_param=section.page_param,
        page_size=section.page_size,
        params=dict(section.params),
        fields=dict(section.field_paths),
    )


def _file_source(section: FileSourceSection, base_dir: Path) -> FileSourceConfig:
    paths = tuple(
        path if path.is_absolute() else base_dir / path
        for path in (Path(item).expanduser() for item in section.paths)
    )
    derive = section.derive_code_from
    return FileSourceConfig(
        paths=paths,
        format=section.format,
        header_aliases={name: tuple(names) for name, names in section.headers.items()} or None,
        custom_headers=tuple(section.custom_headers) if section.custom_headers else None,
        skip_rows=section.skip_rows,
        delimiter=section.delimiter,
        encoding=section.encoding,
        sheet_name=section.sheet,
        derive_code_from=(derive[0], derive[1]) if derive else None,
        page_size=section.page_size,
    )


def _credentials(document: VendorDocument) -> Credentials | None:
    auth = document.auth
    if isinstance(auth, OAuthSection):
        values = require_env_vars([auth.client_id_env, auth.client_secret_env])
        token_url = auth.token_url
        if token_url is None and isinstance(document.source, ApiSourceSection):
            token_url = urljoin(
                document.source.base_url.rstrip("/") + "/", auth.token_path.lstrip("/")
            )
        if token_url is None:
            raise ConfigurationError("auth.token_url is required without an API base_url")
        return OAuthCredentials(
            token_url=token_url,
            client_id=values[auth.client_id_env],
            client_secret=values[auth.client_secret_env],
            refresh_margin_seconds=auth.refresh_margin_seconds,
        )
    if isinstance(auth, ApiKeySection):
        values = require_env_vars([auth.key_env])
        return ApiKeyCredentials(header=auth.header, value=values[auth.key_env], prefix=auth.prefix)
    return None


def _aliases(groups: list[AliasGroup]) -> AliasTable:
    aliases: list[IdentifierAlias] = []
    for group in groups:
        canonical = group.canonical
        prefix = group.site_prefix
        aliases.append(IdentifierAlias(alias=canonical, canonical=canonical, site_prefix=prefix))
        aliases.extend(
            IdentifierAlias(
                alias=name,
                canonical=canonical,
                site_prefix=group.site_prefixes.get(name, prefix),
            )
            for name in group.names
        )
    return AliasTable.from_aliases(aliases)


def _resilience(
    name: str, source: SourceConfig, rate: RateLimitSection, retry: RetrySection
) -> ResilienceConfig:
    burst = None
    if rate.burst_calls is not None:
        burst = RateLimit(max_calls=rate.burst_calls, per_seconds=rate.burst_seconds)
    return ResilienceConfig(
        name=name,
        base_url=source.base_url if isinstance(source, ApiSourceConfig) else None,
        timeout_seconds=retry.timeout_seconds,
        retry=RetryPolicy(
            total=retry.total,
            backoff_factor=retry.backoff_factor,
            max_backoff_wait=retry.max_backoff_wait,
        ),
        ratelimit=burst,
        default_headers={"Accept": "application/json"},
    )


def parse_run_config(document: Mapping[str, object], *, base_dir: Path) -> RunConfig:
    try:
        parsed = VendorDocument.model_validate(document)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid vendor configuration: {_describe(exc)}") from exc

    if isinstance(parsed.source, ApiSourceSection):
        source: SourceConfig = _api_source(parsed.source)
    else:
        source = _file_source(parsed.source, base_dir)

    matching = parsed.matching
    transform = parsed.transform
    options = RunOptions(
        vendor_id=parsed.vendor.id,
        source_id=parsed.vendor.source_id,
        match=MatchConfig(
            strategy=parsed.match_strategy,
            code_namespace=matching.code_namespace,
            trailing_separators=matching.trailing_separators,
            derive_codes=matching.derive_codes,
        ),
        aliases=_aliases(parsed.aliases),
        transform=PriceTransform(
            multiplier=transform.multiplier, markup=transform.markup, places=transform.places
        ),
        checkpoint_every=parsed.run.checkpoint_every,
        progress_every=parsed.run.progress_every,
        max_consecutive_failures=parsed.run.max_consecutive_failures,
    )

    rate = parsed.rate_limit
    return RunConfig(
        options=options,
        source=source,
        resilience=_resilience(parsed.vendor.source_id, source, rate, parsed.retry),
        budget=RequestBudgetConfig(
            min_delay_seconds=rate.min_delay_seconds,
            max_requests_per_hour=rate.max_requests_per_hour,
        ),
        credentials=_credentials(parsed),
        name=parsed.vendor.name,
    )


def load_run_config(path: Path) -> RunConfig:
    """Read and validate a vendor TOML file."""

    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Vendor configuration {path} does not exist") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Vendor configuration {path} is not valid TOML: {exc}") from exc
    return parse_run_config(document, base_dir=path.resolve().parent)
