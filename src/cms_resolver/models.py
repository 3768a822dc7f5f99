# -*- coding: utf-8 -*-
"""
Pydantic data models for the API.
"""
from typing import Any

from pydantic import BaseModel, Field

from .references import ContentOutlineEntry, ResolvedField


class ResolveRequest(BaseModel):
    """Fragment resolution request schema."""

    html: str = Field(..., description="Raw CMS rich-text HTML")
    field: str = Field(default="body", description="Field name, used in logs")
    public_hostname: str | None = Field(
        default=None,
        description="Public hostname substituted for internal CMS hosts",
    )
    extract_toc: bool = Field(
        default=False, description="Inject heading ids and return the outline"
    )


class OutlineEntry(BaseModel):
    """One heading of the table of contents."""

    level: int
    text: str
    anchor_id: str

    @classmethod
    def from_entry(cls, entry: ContentOutlineEntry) -> "OutlineEntry":
        return cls(level=entry.level, text=entry.text, anchor_id=entry.anchor_id)


class ResolveResponse(BaseModel):
    """Fragment resolution response schema."""

    html: str
    toc: list[OutlineEntry] = []
    steps_applied: list[str] = []
    degraded: bool = False

    @classmethod
    def from_field(cls, resolved: ResolvedField) -> "ResolveResponse":
        return cls(
            html=resolved.html,
            toc=[OutlineEntry.from_entry(e) for e in resolved.toc],
            steps_applied=resolved.steps_applied,
            degraded=resolved.degraded,
        )


class ContentResponse(BaseModel):
    """Resolved content item schema."""

    content_type: str
    slug: str
    fields: dict[str, ResolveResponse] = {}
    toc: list[OutlineEntry] = []
    item: dict[str, Any] = {}


class ListingResponse(BaseModel):
    """Content listing schema."""

    content_type: str
    count: int = 0
    items: list[Any] = []


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    cms_ready: bool
    cms_base: str
    version: str
