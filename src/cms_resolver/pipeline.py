# -*- coding: utf-8 -*-
"""
Rich-text resolution pipeline.

Every field goes through the same steps on one parsed tree:

1. Media Rewrite - proxy /media/ URLs in src, srcset and CSS
2. Reference Lookup - resolve embed and link ids through the shared cache
3. Embed Substitution - replace image placeholders with <img> tags
4. Link Substitution - point page/document links at site routes
5. Legacy Href Cleanup - translate hrefs still using old CMS sections
6. External Links - open off-site anchors in a new tab
7. Outline - inject heading ids and collect the outline (body field only)

Substitution only starts once every lookup of the field has settled, so the
result does not depend on lookup completion order.
"""
import asyncio
import logging

from bs4 import BeautifulSoup

from .cache import ResolutionCache
from .cms_client import CMSClient, cms_client
from .config import settings
from .embeds import EmbedResolver
from .hosts import resolve_public_base
from .links import LinkResolver
from .markup import parse_fragment, serialize
from .media import MediaRewriter
from .references import ResolvedField, RichTextDocument
from .routes import DEFAULT_ROUTE_TABLE, RouteTable
from .toc import build_outline

logger = logging.getLogger(__name__)


class ResolutionPipeline:
    """
    Turns CMS rich-text fields into renderable HTML.

    Lookups always go to the client's base URL. URLs emitted into HTML
    (document links) use the public base: the configured public origin, or
    the CMS base with ``public_hostname`` substituted for internal hosts.
    """

    def __init__(
            self,
            client: CMSClient | None = None,
            public_hostname: str | None = None,
            table: RouteTable = DEFAULT_ROUTE_TABLE,
    ):
        self.client = client or cms_client
        self.public_base = resolve_public_base(
            self.client.base_url,
            public_hostname=public_hostname or settings.PUBLIC_HOSTNAME or None,
            explicit_origin=settings.CMS_PUBLIC_ORIGIN or None,
            internal_hosts=settings.CMS_INTERNAL_HOSTS,
        )
        self.media = MediaRewriter(cms_base=self.client.base_url)
        self.embeds = EmbedResolver(self.client, self.media)
        self.links = LinkResolver(self.client, self.public_base, table=table)

    async def resolve_field(
            self,
            document: RichTextDocument,
            cache: ResolutionCache | None = None,
            extract_toc: bool = False,
    ) -> ResolvedField:
        """
        Resolve one rich-text field.

        A field whose resolution raises is degraded on its own: media URLs
        are still rewritten, image embeds are dropped and CMS links point at
        ``#``. If even that fails the raw HTML is returned.

        Args:
            document: Field name and raw HTML
            cache: Cache shared with the other fields of the same item
            extract_toc: Inject heading ids and collect the outline

        Returns:
            ResolvedField with HTML, outline and the steps that changed it
        """
        if not document.html or not document.html.strip():
            return ResolvedField(name=document.name, html=document.html or "")

        cache = cache if cache is not None else ResolutionCache()
        try:
            return await self._resolve(document, cache, extract_toc)
        except Exception as e:
            logger.error(
                f"Resolution failed for field {document.name}, degrading: {e}",
                extra={"field": document.name},
            )
            return self._degrade(document)

    async def _resolve(
            self,
            document: RichTextDocument,
            cache: ResolutionCache,
            extract_toc: bool,
    ) -> ResolvedField:
        soup = parse_fragment(document.html)
        result = ResolvedField(name=document.name, html=document.html)

        # Step 1: Media Rewrite
        if self.media.visit(soup):
            result.steps_applied.append("media_rewrite")

        # Step 2: Reference Lookup (all ids of the field, concurrently)
        has_cms_links = soup.find("a", attrs={"linktype": True}) is not None
        assets, routes = await asyncio.gather(
            self.embeds.resolve(soup, cache),
            self.links.resolve(soup, cache),
        )

        # Step 3: Embed Substitution
        if assets:
            replaced = self.embeds.substitute(soup, assets)
            result.steps_applied.append("embed_resolution")
            if replaced < len(assets):
                logger.info(
                    f"{len(assets) - replaced} embedded images unresolved",
                    extra={"field": document.name},
                )

        # Step 4: Link Substitution
        if has_cms_links:
            self.links.substitute(soup, routes)
            result.steps_applied.append("link_resolution")

        # Step 5: Legacy Href Cleanup
        if self.links.normalize_legacy_hrefs(soup):
            result.steps_applied.append("legacy_hrefs")

        # Step 6: External Links
        if self.links.mark_external(soup):
            result.steps_applied.append("external_links")

        # Step 7: Outline
        if extract_toc:
            result.toc = build_outline(soup)
            if result.toc:
                result.steps_applied.append("toc")

        if result.steps_applied:
            result.html = serialize(soup)
        return result

    def _degrade(self, document: RichTextDocument) -> ResolvedField:
        try:
            soup = parse_fragment(document.html)
            self.media.visit(soup)
            self._neutralize(soup)
            html = serialize(soup)
        except Exception as e:
            logger.error(
                f"Could not neutralize field {document.name}: {e}",
                extra={"field": document.name},
            )
            html = document.html
        return ResolvedField(name=document.name, html=html, degraded=True)

    @staticmethod
    def _neutralize(soup: BeautifulSoup) -> None:
        EmbedResolver.neutralize(soup)
        LinkResolver.neutralize(soup)

    async def resolve_item(
            self,
            fields: dict[str, str],
            body_field: str | None = None,
            cache: ResolutionCache | None = None,
    ) -> dict[str, ResolvedField]:
        """
        Resolve every rich-text field of one content item concurrently.

        Fields share one cache, so an id referenced by several fields is
        looked up once. Only ``body_field`` gets an outline.
        """
        cache = cache if cache is not None else ResolutionCache()
        names = list(fields)
        results = await asyncio.gather(
            *(
                self.resolve_field(
                    RichTextDocument(name=name, html=fields[name]),
                    cache,
                    extract_toc=(name == body_field),
                )
                for name in names
            )
        )
        logger.debug(
            f"Resolved {len(names)} fields",
            extra={"lookups": len(cache), "degraded": sum(r.degraded for r in results)},
        )
        return dict(zip(names, results))
