"""Pydantic models describing paginated vendor API payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class VendorBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PageMeta(VendorBaseModel):
    total_pages: int | None = Field(default=None, ge=0)
    total_count: int | None = Field(default=None, ge=0)


class ItemsPage(VendorBaseModel):
    data: list[dict[str, Any]] = Field(default_factory=list)
    meta: PageMeta | None = None

    @property
    def total_pages(self) -> int | None:
        return self.meta.total_pages if self.meta else None


class TokenResponse(VendorBaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: float = 3600.0
