# -*- coding: utf-8 -*-
"""
Content service: fetch an item from the CMS and resolve its rich text.
"""
import logging
import time
from typing import Any

from .cache import ResolutionCache
from .cms_client import CMSClient, cms_client
from .content_types import get_content_type
from .endpoints import ContentNotFoundError
from .pipeline import ResolutionPipeline
from .references import ResolvedContent, ResolvedField, RichTextDocument

logger = logging.getLogger(__name__)

# Single-URL image fields served next to the rich text
IMAGE_FIELDS = ("image", "image_url", "featured_image", "hero_image", "thumbnail")


class ContentService:
    """Resolves CMS content items for the site."""

    def __init__(self, client: CMSClient | None = None):
        self.client = client or cms_client

    def pipeline_for(self, public_hostname: str | None = None) -> ResolutionPipeline:
        """Pipeline emitting URLs for the given public hostname."""
        return ResolutionPipeline(self.client, public_hostname=public_hostname)

    async def resolve_html(
            self,
            html: str,
            field: str = "body",
            public_hostname: str | None = None,
            extract_toc: bool = False,
    ) -> ResolvedField:
        """Resolve a single fragment outside of any content item."""
        pipeline = self.pipeline_for(public_hostname)
        return await pipeline.resolve_field(
            RichTextDocument(name=field, html=html),
            ResolutionCache(),
            extract_toc=extract_toc,
        )

    async def get_content(
            self,
            content_type: str,
            slug: str,
            public_hostname: str | None = None,
            lang: str | None = None,
    ) -> ResolvedContent:
        """
        Fetch one item and resolve all of its rich-text fields.

        Raises:
            UnknownContentTypeError: if the content type is not registered
            ContentNotFoundError: if no endpoint candidate returns the item
        """
        start_time = time.time()
        entry = get_content_type(content_type)

        result = await entry.detail_chain(slug, lang).fetch(self.client)
        item = result.data
        if not isinstance(item, dict):
            raise ContentNotFoundError(
                f"{entry.name}: unexpected payload for {slug}", [result.descriptor.describe()]
            )

        pipeline = self.pipeline_for(public_hostname)
        fields = {name: entry.field_value(item, name) for name in entry.fields if entry.field_value(item, name)}
        resolved = await pipeline.resolve_item(fields, body_field=entry.body_field)

        metadata = self._metadata(item, entry.fields, pipeline)
        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            "Content resolved",
            extra={
                "content_type": entry.name,
                "slug": slug,
                "fields": len(resolved),
                "degraded": sum(f.degraded for f in resolved.values()),
                "duration_ms": duration_ms,
            },
        )
        return ResolvedContent(
            content_type=entry.name,
            slug=item.get("slug") or slug,
            item=metadata,
            fields=resolved,
        )

    @staticmethod
    def _metadata(
            item: dict[str, Any], rich_text_fields: tuple[str, ...], pipeline: ResolutionPipeline
    ) -> dict[str, Any]:
        metadata = {k: v for k, v in item.items() if k not in rich_text_fields}
        for key in IMAGE_FIELDS:
            value = metadata.get(key)
            if isinstance(value, str) and value:
                metadata[key] = pipeline.media.proxy(value)
        return metadata

    async def list_content(
            self, content_type: str, limit: int = 100, lang: str | None = None
    ) -> list[Any]:
        """
        Item listing of a content type; empty when every endpoint fails.

        Raises:
            UnknownContentTypeError: if the content type is not registered
        """
        entry = get_content_type(content_type)
        try:
            result = await entry.listing_chain(limit, lang).fetch(self.client)
        except ContentNotFoundError as e:
            logger.warning(
                f"No listing for {entry.name}",
                extra={"attempted": len(e.attempted)},
            )
            return []
        return result.data


# Global service instance
content_service = ContentService()


def get_content_service() -> ContentService:
    """FastAPI dependency returning the shared content service."""
    return content_service
