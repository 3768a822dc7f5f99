# -*- coding: utf-8 -*-
"""
Internal link resolution.

Wagtail stores links to other pages and to documents as::

    <a linktype="page" id="7">Type 1 diabetes</a>
    <a linktype="document" id="3">Patient leaflet</a>

Page ids are resolved through the pages API and mapped to site routes;
document ids map to a direct download URL. After substitution no ``linktype``
attribute is left in the fragment.
"""
import logging
from typing import Iterable
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag

from .cache import ResolutionCache
from .cms_client import CMSClient, CMSLookupError, document_url
from .config import settings
from .hosts import is_internal_host
from .markup import merge_tokens
from .references import InternalLinkReference, ResolvedRoute
from .routes import DEFAULT_ROUTE_TABLE, RouteTable, build_route, is_legacy_path, translate_legacy_path

logger = logging.getLogger(__name__)

UNRESOLVED_HREF = "#"
SAFE_REL = ("noopener", "noreferrer")


def _link_type(anchor: Tag) -> str:
    return (anchor.get("linktype") or "").strip().lower()


def extract_link_references(
        soup: BeautifulSoup,
) -> tuple[list[InternalLinkReference], list[InternalLinkReference]]:
    """Unique page and document link references, each in document order."""
    pages: dict[str, InternalLinkReference] = {}
    documents: dict[str, InternalLinkReference] = {}
    for anchor in soup.find_all("a"):
        link_type = _link_type(anchor)
        ref_id = (anchor.get("id") or "").strip()
        if not ref_id:
            continue
        if link_type == "page":
            pages.setdefault(ref_id, InternalLinkReference(id=ref_id, kind="page"))
        elif link_type == "document":
            documents.setdefault(ref_id, InternalLinkReference(id=ref_id, kind="document"))
    return list(pages.values()), list(documents.values())


def open_in_new_tab(anchor: Tag) -> None:
    anchor["target"] = "_blank"
    anchor["rel"] = merge_tokens(anchor.get("rel"), *SAFE_REL)


class LinkResolver:
    """Resolves page and document links and marks external anchors."""

    def __init__(
            self,
            client: CMSClient,
            public_base: str,
            table: RouteTable = DEFAULT_ROUTE_TABLE,
            site_hosts: Iterable[str] | None = None,
            internal_hosts: Iterable[str] | None = None,
    ):
        self.client = client
        self.public_base = public_base
        self.table = table
        self.site_hosts = {
            h.lower() for h in (site_hosts if site_hosts is not None else settings.SITE_HOSTS)
        }
        self.internal_hosts = tuple(
            internal_hosts if internal_hosts is not None else settings.CMS_INTERNAL_HOSTS
        )

    async def lookup(self, page_id: str) -> ResolvedRoute | None:
        """Resolve one page id to a site route, or None on failure."""
        try:
            page = await self.client.get_page(page_id)
        except CMSLookupError as e:
            logger.warning(
                "Internal page lookup failed",
                extra={"page_id": page_id, "error": str(e), "status_code": e.status_code},
            )
            return None

        built = build_route(page, self.table)
        if built is None:
            logger.warning("Could not build route for page", extra={"page_id": page_id})
            return None

        slug, route = built
        meta = page.get("meta")
        page_type = meta.get("type") if isinstance(meta, dict) else None
        page_type = page_type if isinstance(page_type, str) else ""
        logger.debug("Internal link resolved", extra={"page_id": page_id, "route": route})
        return ResolvedRoute(id=page_id, content_type=page_type, slug=slug, route=route)

    async def resolve(
            self, soup: BeautifulSoup, cache: ResolutionCache
    ) -> dict[str, ResolvedRoute | None]:
        """Look up every unique page link id of a parsed fragment."""
        pages, documents = extract_link_references(soup)
        if documents:
            logger.debug(f"Found {len(documents)} document links")
        if not pages:
            return {}
        logger.debug(f"Found {len(pages)} unique page links")
        return await cache.resolve_many("page", [r.id for r in pages], self.lookup)

    def substitute(self, soup: BeautifulSoup, routes: dict[str, ResolvedRoute | None]) -> int:
        """
        Rewrite every CMS link anchor and strip the CMS link attributes.

        Returns:
            Number of anchors pointing at a resolved target
        """
        resolved = 0
        for anchor in soup.find_all("a"):
            if not anchor.has_attr("linktype"):
                continue
            link_type = _link_type(anchor)
            ref_id = (anchor.get("id") or "").strip()

            if link_type == "page":
                route = routes.get(ref_id) if ref_id else None
                if route:
                    anchor["href"] = route.route
                    resolved += 1
                else:
                    anchor["href"] = UNRESOLVED_HREF
            elif link_type == "document":
                if ref_id:
                    anchor["href"] = document_url(ref_id, self.public_base)
                    open_in_new_tab(anchor)
                    resolved += 1
                else:
                    anchor["href"] = UNRESOLVED_HREF

            del anchor["linktype"]
            if link_type in ("page", "document") and anchor.has_attr("id"):
                del anchor["id"]
        return resolved

    def normalize_legacy_hrefs(self, soup: BeautifulSoup) -> int:
        """Translate hrefs that still use legacy CMS section paths."""
        changed = 0
        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            path = href
            if href.startswith(("http://", "https://")):
                try:
                    parts = urlsplit(href)
                except ValueError:
                    logger.debug("Skipping malformed href", extra={"href": href[:120]})
                    continue
                if not is_internal_host(parts.hostname, self.internal_hosts):
                    continue
                path = parts.path
            if not is_legacy_path(path):
                continue
            route = translate_legacy_path(path, self.table.categories)
            if route and route != href:
                anchor["href"] = route
                changed += 1
        return changed

    def mark_external(self, soup: BeautifulSoup) -> int:
        """Open off-site anchors in a new tab with safe rel values."""
        marked = 0
        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if not href.lower().startswith(("http://", "https://")):
                continue
            try:
                hostname = (urlsplit(href).hostname or "").lower()
            except ValueError:
                logger.debug("Skipping malformed href", extra={"href": href[:120]})
                continue
            if not hostname or hostname in self.site_hosts:
                continue
            open_in_new_tab(anchor)
            marked += 1
        return marked

    @staticmethod
    def neutralize(soup: BeautifulSoup) -> None:
        """Point every CMS link at ``#`` without resolving it."""
        for anchor in soup.find_all("a"):
            if not anchor.has_attr("linktype"):
                continue
            link_type = _link_type(anchor)
            if link_type in ("page", "document"):
                anchor["href"] = UNRESOLVED_HREF
                if anchor.has_attr("id"):
                    del anchor["id"]
            del anchor["linktype"]
