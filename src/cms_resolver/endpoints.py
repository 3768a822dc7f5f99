# -*- coding: utf-8 -*-
"""
Ordered endpoint candidates for content lookups.

The CMS exposes the same content under different paths depending on the
content type and deployment (``/api/yoga/topics/{slug}``,
``/api/v1/yoga/topics/{slug}/``, ``/api/v2/pages/?slug=...``). A lookup is
an ``EndpointChain``: candidates are tried in order and the first one that
returns a usable payload wins.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from .cms_client import CMSClient, CMSLookupError

logger = logging.getLogger(__name__)


class ContentNotFoundError(Exception):
    """No endpoint candidate returned the requested content."""

    def __init__(self, message: str, attempted: list[str] | None = None):
        super().__init__(message)
        self.attempted = attempted or []


@dataclass(frozen=True)
class RequestDescriptor:
    """One candidate request: a CMS path plus query parameters."""

    path: str
    params: dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        if not self.params:
            return self.path
        query = "&".join(f"{k}={v}" for k, v in self.params.items())
        return f"{self.path}?{query}"


def unwrap_detail(data: Any) -> Any | None:
    """
    Extract one item from a detail payload.

    Wagtail listing endpoints answer detail-by-filter queries with
    ``{"items": [...]}``; the first item is the match. Empty payloads are
    misses.
    """
    if not data:
        return None
    if isinstance(data, dict):
        for key in ("items", "results"):
            if key in data and isinstance(data[key], list):
                return data[key][0] if data[key] else None
        return data
    if isinstance(data, list):
        return data[0] if data else None
    return None


def unwrap_listing(data: Any) -> list[Any] | None:
    """Extract the item list from a listing payload."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("items", "results", "data"):
            if isinstance(data.get(key), list):
                return data[key]
        if data.get("id") or data.get("slug"):
            return [data]
    return None


@dataclass
class FetchResult:
    """Payload of the winning candidate."""

    descriptor: RequestDescriptor
    data: Any


@dataclass
class EndpointChain:
    """Ordered candidates; the first usable response wins."""

    name: str
    candidates: list[RequestDescriptor]
    extract: Callable[[Any], Any | None] = unwrap_detail

    async def fetch(self, client: CMSClient) -> FetchResult:
        """
        Try every candidate in order.

        Raises:
            ContentNotFoundError: if no candidate yields a usable payload
        """
        attempted = []
        for descriptor in self.candidates:
            attempted.append(descriptor.describe())
            try:
                payload = await client.get_json(descriptor.path, params=descriptor.params or None)
            except CMSLookupError as e:
                logger.debug(
                    f"Endpoint candidate failed: {descriptor.describe()}",
                    extra={"chain": self.name, "error": str(e)},
                )
                continue

            data = self.extract(payload)
            if data is None:
                logger.debug(
                    f"Endpoint candidate empty: {descriptor.describe()}",
                    extra={"chain": self.name},
                )
                continue

            logger.info(
                "Endpoint candidate succeeded",
                extra={"chain": self.name, "endpoint": descriptor.describe()},
            )
            return FetchResult(descriptor=descriptor, data=data)

        logger.warning(
            "All endpoint candidates failed",
            extra={"chain": self.name, "attempted": len(attempted)},
        )
        raise ContentNotFoundError(f"{self.name}: all endpoints failed", attempted)
