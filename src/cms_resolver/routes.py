# -*- coding: utf-8 -*-
"""
Site route derivation for CMS pages.

Two tables drive it:

- the type table maps a Wagtail page type (``conditions.ConditionPage``) to a
  site route prefix (``/conditions``);
- the legacy prefix table maps old CMS section paths
  (``all-conditions-a-z/...``) to the same prefixes, for pages whose
  metadata still carries a full CMS path instead of a clean slug.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

NON_WORD_PATTERN = re.compile(r"[^\w\s-]")
SEPARATOR_PATTERN = re.compile(r"[\s_-]+")
ID_SUFFIX_PATTERN = re.compile(r"^(?P<slug>.*?)-(?P<id>\d+)$")


def generate_slug(text: str | None) -> str:
    """URL-friendly slug: lowercase, punctuation dropped, separators to hyphens."""
    if not text:
        return ""
    slug = NON_WORD_PATTERN.sub("", text.lower().strip())
    slug = SEPARATOR_PATTERN.sub("-", slug)
    return slug.strip("-")


def parse_id_slug(value: str | None) -> tuple[str, str | None]:
    """Split ``name-123`` into ``("name", "123")``; plain slugs get no id."""
    if not value:
        return "", None
    match = ID_SUFFIX_PATTERN.match(value)
    if match and match.group("slug"):
        return match.group("slug"), match.group("id")
    return value, None


@dataclass(frozen=True)
class RouteRule:
    """Page types matching any of ``matchers`` live under ``prefix``."""

    matchers: tuple[str, ...]
    prefix: str

    def matches(self, value: str) -> bool:
        return any(matcher in value for matcher in self.matchers)


class RouteTable:
    """
    Ordered page type → route prefix table.

    The Django app label of the type (the part before the dot) is matched
    first against every rule; only when no rule matches it is the full type
    string tried. ``news.NewsArticlePage`` therefore routes to ``/news``
    even though its model name mentions articles.
    """

    def __init__(self, rules: Iterable[RouteRule]):
        self.rules = tuple(rules)

    def prefix_for(self, page_type: str | None) -> str | None:
        """Route prefix for a page type, or None for the catch-all."""
        value = (page_type or "").lower()
        if not value:
            return None
        app_label = value.split(".", 1)[0]
        for candidate in (app_label, value):
            for rule in self.rules:
                if rule.matches(candidate):
                    return rule.prefix
        return None

    def route(self, page_type: str | None, slug: str) -> str:
        """``{prefix}/{slug}``, or ``/{slug}`` when no rule matches."""
        slug = slug.strip("/")
        prefix = self.prefix_for(page_type)
        return f"{prefix}/{slug}" if prefix else f"/{slug}"

    @property
    def categories(self) -> frozenset[str]:
        """First path segment of every known prefix."""
        return frozenset(rule.prefix.strip("/").split("/")[0] for rule in self.rules)


DEFAULT_ROUTE_TABLE = RouteTable([
    RouteRule(("homeopathy", "homeopathic"), "/homeopathy"),
    RouteRule(("ayurveda", "ayurvedic"), "/ayurveda"),
    RouteRule(("yoga", "exercise"), "/yoga-exercise"),
    RouteRule(("wellness",), "/wellness"),
    RouteRule(("news",), "/news"),
    RouteRule(("condition",), "/conditions"),
    RouteRule(("drug",), "/drugs"),
    RouteRule(("article",), "/articles"),
])

# Legacy CMS section segment → site category
LEGACY_SECTION_PREFIXES = {
    "all-homeopathic-pages": "homeopathy",
    "all-homeopathy": "homeopathy",
    "all-ayurvedic-pages": "ayurveda",
    "all-ayurveda": "ayurveda",
    "all-news-pages": "news",
    "all-news": "news",
    "all-conditions-a-z": "conditions",
    "all-conditions": "conditions",
    "all-wellness-pages": "wellness",
    "all-wellness": "wellness",
    "all-yoga-pages": "yoga-exercise",
    "all-yoga": "yoga-exercise",
    "all-drugs-a-z-pages": "drugs",
    "all-drugs-pages": "drugs",
    "all-drugs-a-z": "drugs",
    "all-drugs": "drugs",
    "all-article-pages": "articles",
    "all-articles": "articles",
}

# Wagtail root page segments that never appear in site routes
ROOT_SEGMENTS = {"home"}


def is_legacy_path(path: str | None) -> bool:
    """True for hrefs still addressed by legacy CMS sections."""
    if not path or not path.startswith("/"):
        return False
    segments = [s for s in path.split("/") if s]
    while segments and segments[0].lower() in ROOT_SEGMENTS:
        segments = segments[1:]
    if not segments:
        return False
    first = segments[0].lower()
    if first in LEGACY_SECTION_PREFIXES:
        return True
    return len(segments) > 1 and segments[1].lower() == first and first in DEFAULT_ROUTE_TABLE.categories


def translate_legacy_path(
        path: str | None,
        categories: Iterable[str] | None = None,
) -> str | None:
    """
    Translate a legacy CMS URL path into a site route.

    Examples::

        /home/all-news-pages/flu-season/          -> /news/flu-season
        all-conditions-a-z/conditions/condition/adhd -> /conditions/adhd
        articles/articles/warm-up                 -> /articles/warm-up

    Section prefixes are matched on whole path segments, so overlapping
    spellings (``all-drugs`` vs ``all-drugs-a-z-pages``) never shadow each
    other. Nested legacy sections are translated too.

    Returns:
        The route, or None when the path does not land in a known category
    """
    if not path:
        return None
    known = frozenset(categories) if categories is not None else DEFAULT_ROUTE_TABLE.categories

    segments = [s for s in path.strip().strip("/").split("/") if s]
    while segments and segments[0].lower() in ROOT_SEGMENTS:
        segments = segments[1:]
    if not segments:
        return None

    segments = [LEGACY_SECTION_PREFIXES.get(s.lower(), s) for s in segments]

    # Collapse repeated categories (articles/articles/...)
    collapsed = [segments[0]]
    for segment in segments[1:]:
        if segment == collapsed[-1] and segment in known:
            continue
        collapsed.append(segment)
    segments = collapsed

    category = segments[0]
    if category not in known or len(segments) < 2:
        return None

    route = f"/{category}/{segments[-1]}"
    if route != "/" + "/".join(segments):
        logger.debug("Simplified legacy path", extra={"path": path, "route": route})
    return route


def _meta(page: dict[str, Any]) -> dict[str, Any]:
    meta = page.get("meta")
    return meta if isinstance(meta, dict) else {}


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def page_path(page: dict[str, Any]) -> str | None:
    """Legacy URL path of a page payload, from url_path or html_url."""
    meta = _meta(page)
    for key in ("url_path", "url", "html_url"):
        value = meta.get(key) or page.get(key)
        if isinstance(value, str) and value.strip():
            value = value.strip()
            if value.startswith(("http://", "https://")):
                try:
                    value = urlsplit(value).path
                except ValueError:
                    logger.debug("Skipping malformed page URL", extra={"key": key, "url": value[:120]})
                    continue
            return value
    return None


def build_route(
        page: dict[str, Any],
        table: RouteTable = DEFAULT_ROUTE_TABLE,
) -> tuple[str, str] | None:
    """
    Derive the site route of a CMS page payload.

    Returns:
        ``(slug, route)`` or None when the payload carries neither a slug,
        a URL path, nor a title
    """
    meta = _meta(page)
    page_type = _text(meta.get("type")) or _text(page.get("type"))
    slug = (_text(meta.get("slug")) or _text(page.get("slug"))).strip()

    legacy = None
    if "/" in slug.strip("/"):
        legacy = slug
    elif not slug:
        legacy = page_path(page)

    if legacy:
        route = translate_legacy_path(legacy, table.categories)
        if route:
            return route.rsplit("/", 1)[-1], route
        # Unknown section: keep the last segment and route by type
        slug = next((s for s in reversed(legacy.split("/")) if s), "")

    slug = slug.strip("/") or generate_slug(_text(page.get("title")))
    if not slug:
        return None
    return slug, table.route(page_type, slug)
