"""Pydantic models describing the sections of a vendor TOML file."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Annotated, Literal, cast

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)

from vendorsync.domain.model import MatchStrategy

from .sources import LOGICAL_FIELDS

MAX_COST_PLACES = 4
DERIVED_CODE_PARTS = 2


def _as_list(value: object) -> object:
    if isinstance(value, str):
        return [value]
    return value


def _number_as_text(value: object) -> object:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return value


def _check_logical(names: Mapping[str, object] | list[str]) -> None:
    unknown = sorted(set(names) - set(LOGICAL_FIELDS))
    if unknown:
        raise ValueError(f"unknown fields: {', '.join(unknown)}")


Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
TextList = Annotated[list[Text], BeforeValidator(_as_list)]
Amount = Annotated[Decimal, BeforeValidator(_number_as_text)]
ParamValue = Annotated[str, BeforeValidator(_number_as_text)]


class SectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


class VendorSection(SectionModel):
    id: int
    source_id: Text
    name: Text | None = None


class ApiSourceSection(SectionModel):
    kind: Literal["api"]
    base_url: Text
    items_path: Text = "/v1/items"
    page_param: Text = "page"
    page_size: int = Field(default=100, ge=1)
    params: dict[str, ParamValue] = Field(default_factory=dict)
    field_paths: dict[str, Text] = Field(alias="fields", min_length=1)

    @field_validator("field_paths")
    @classmethod
    def _known_fields(cls, value: dict[str, str]) -> dict[str, str]:
        _check_logical(value)
        return value


class FileSourceSection(SectionModel):
    kind: Literal["file"]
    paths: TextList = Field(min_length=1)
    format: Literal["auto", "csv", "xlsx"] = "auto"
    headers: dict[str, TextList] = Field(default_factory=dict)
    custom_headers: TextList | None = None
    derive_code_from: TextList = Field(default_factory=lambda: ["vendor_code", "part_number"])
    delimiter: str = Field(default=",", min_length=1, max_length=1)
    skip_rows: int = Field(default=0, ge=0)
    page_size: int = Field(default=500, ge=1)
    encoding: Text = "utf-8-sig"
    sheet: Text | None = None

    @model_validator(mode="before")
    @classmethod
    def _single_path(cls, value: object) -> object:
        if isinstance(value, Mapping):
            data = dict(cast("Mapping[str, object]", value))
            if "path" in data and "paths" not in data:
                data["paths"] = data.pop("path")
            return data
        return value

    @field_validator("headers")
    @classmethod
    def _known_headers(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        _check_logical(value)
        return value

    @field_validator("derive_code_from")
    @classmethod
    def _derivation_pair(cls, value: list[str]) -> list[str]:
        if value and len(value) != DERIVED_CODE_PARTS:
            raise ValueError("must name exactly two fields")
        _check_logical(value)
        return value


class NoAuthSection(SectionModel):
    kind: Literal["none"] = "none"


class OAuthSection(SectionModel):
    kind: Literal["oauth2"]
    client_id_env: Text
    client_secret_env: Text
    token_url: Text | None = None
    token_path: Text = "/v1/token"
    refresh_margin_seconds: float = Field(default=60.0, ge=0)


class ApiKeySection(SectionModel):
    kind: Literal["api_key"]
    key_env: Text
    header: Text = "Authorization"
    prefix: str = ""


class AliasGroup(SectionModel):
    canonical: Text
    names: TextList = Field(default_factory=list)
    site_prefix: Text | None = None
    site_prefixes: dict[str, ParamValue] = Field(default_factory=dict)


class MatchingSection(SectionModel):
    strategy: MatchStrategy | None = None
    code_namespace: Text | None = None
    trailing_separators: str = "-"
    derive_codes: bool = True


class TransformSection(SectionModel):
    multiplier: Amount = Field(default=Decimal(1), gt=0)
    markup: Amount = Field(default=Decimal(0), ge=-1)
    places: int = Field(default=2, ge=0, le=MAX_COST_PLACES)


class RateLimitSection(SectionModel):
    min_delay_seconds: float = Field(default=0.0, ge=0)
    max_requests_per_hour: int | None = Field(default=None, ge=1)
    burst_calls: int | None = Field(default=None, ge=1)
    burst_seconds: float = Field(default=1.0, gt=0)


class RetrySection(SectionModel):
    total: int = Field(default=4, ge=0)
    backoff_factor: float = Field(default=0.5, ge=0)
    max_backoff_wait: float = Field(default=60.0, ge=0)
    timeout_seconds: float = Field(default=30.0, gt=0)


class RunSection(SectionModel):
    checkpoint_every: int = Field(default=5, ge=1)
    progress_every: int = Field(default=20, ge=0)
    max_consecutive_failures: int = Field(default=3, ge=1)


SourceSection = Annotated[ApiSourceSection | FileSourceSection, Field(discriminator="kind")]
AuthSection = Annotated[
    NoAuthSection | OAuthSection | ApiKeySection, Field(discriminator="kind")
]


class VendorDocument(SectionModel):
    vendor: VendorSection
    source: SourceSection
    auth: AuthSection = Field(default_factory=NoAuthSection)
    aliases: list[AliasGroup] = Field(default_factory=list)
    matching: MatchingSection = Field(default_factory=MatchingSection)
    transform: TransformSection = Field(default_factory=TransformSection)
    rate_limit: RateLimitSection = Field(default_factory=RateLimitSection)
    retry: RetrySection = Field(default_factory=RetrySection)
    run: RunSection = Field(default_factory=RunSection)

    @property
    def match_strategy(self) -> MatchStrategy:
        if self.matching.strategy is not None:
            return self.matching.strategy
        if isinstance(self.source, FileSourceSection):
            return MatchStrategy.CODE
        return MatchStrategy.BRAND_PART

    @model_validator(mode="after")
    def _code_namespace_for_code_strategy(self) -> VendorDocument:
        if self.match_strategy is MatchStrategy.CODE and self.matching.code_namespace is None:
            raise ValueError("matching.code_namespace is required for the code strategy")
        return self
