# -*- coding: utf-8 -*-
"""
Data model shared by the resolution stages.
"""
from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass(frozen=True)
class RichTextDocument:
    """A named HTML fragment owned by one content item."""

    name: str
    html: str


@dataclass(frozen=True)
class EmbedReference:
    """Embedded image placeholder found in a document."""

    id: str
    kind: Literal["image"] = "image"


@dataclass(frozen=True)
class InternalLinkReference:
    """Internal page or document link placeholder found in a document."""

    id: str
    kind: Literal["page", "document"] = "page"


@dataclass(frozen=True)
class ResolvedAsset:
    """An embed reference resolved against the CMS image API."""

    id: str
    url: str
    title: str | None = None
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True)
class ResolvedRoute:
    """An internal page reference resolved to a site route."""

    id: str
    content_type: str
    slug: str
    route: str


@dataclass(frozen=True)
class ContentOutlineEntry:
    """One h2/h3 heading of a resolved body."""

    level: int
    text: str
    anchor_id: str


@dataclass
class ResolvedField:
    """Result of one resolution pass over one rich-text field."""

    name: str
    html: str
    toc: list[ContentOutlineEntry] = field(default_factory=list)
    steps_applied: list[str] = field(default_factory=list)
    degraded: bool = False


@dataclass
class ResolvedContent:
    """A content item with every rich-text field resolved."""

    content_type: str
    slug: str
    item: dict[str, Any]
    fields: dict[str, ResolvedField] = field(default_factory=dict)

    @property
    def toc(self) -> list[ContentOutlineEntry]:
        """Outline of the body field (the only field that gets one)."""
        for resolved in self.fields.values():
            if resolved.toc:
                return resolved.toc
        return []
