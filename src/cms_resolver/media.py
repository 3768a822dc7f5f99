# -*- coding: utf-8 -*-
"""
Media URL rewriting.

CMS rich text points at assets either relatively (``/media/images/x.png``)
or absolutely on whatever host the CMS was reached through
(``http://127.0.0.1:8001/media/images/x.png``). The public site serves those
files through a proxy prefix (``/cms-media``), so every asset-bearing value
is rewritten to ``/cms-media/images/x.png``.

The rewrite is idempotent: already proxied paths are left alone and an
accidental double prefix is collapsed.
"""
import logging
import re
from typing import Iterable
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from .config import settings
from .hosts import LOOPBACK_HOSTS, ensure_scheme
from .markup import parse_fragment, serialize

logger = logging.getLogger(__name__)

MEDIA_PATH = "/media"

# url(...) with optional single or double quotes
CSS_URL_PATTERN = re.compile(r"""url\(\s*(["']?)([^"')]+?)\1\s*\)""", re.IGNORECASE)


def media_hosts_for(cms_base: str | None, internal_hosts: Iterable[str] = ()) -> frozenset[str]:
    """Hostnames whose /media/ paths belong to the CMS."""
    hosts = set(LOOPBACK_HOSTS)
    hosts.update(h.lower() for h in internal_hosts)
    if cms_base:
        try:
            hostname = urlsplit(ensure_scheme(cms_base)).hostname
        except ValueError:
            logger.warning("Malformed CMS base URL, only loopback media hosts kept", extra={"cms_base": cms_base})
            hostname = None
        if hostname:
            hosts.add(hostname.lower())
    return frozenset(hosts)


def collapse_double_prefix(value: str, prefix: str) -> str:
    """Collapse ``/cms-media/media/`` and ``/cms-media/cms-media/`` to one prefix."""
    doubled = (f"{prefix}{MEDIA_PATH}/", f"{prefix}{prefix}/")
    while value.startswith(doubled):
        for candidate in doubled:
            if value.startswith(candidate):
                value = f"{prefix}/" + value[len(candidate):]
    return value


def proxy_media_url(
        url: str | None,
        media_hosts: Iterable[str] = LOOPBACK_HOSTS,
        prefix: str | None = None,
) -> str | None:
    """
    Rewrite one asset URL to the proxied media prefix.

    URLs on hosts that are not CMS hosts, and paths outside /media/, are
    returned unchanged.
    """
    if not url:
        return url
    prefix = (prefix if prefix is not None else settings.MEDIA_PROXY_PREFIX).rstrip("/")
    value = url.strip()

    if value.startswith(("http://", "https://", "//")):
        try:
            parts = urlsplit(value if not value.startswith("//") else f"http:{value}")
        except ValueError as e:
            logger.warning(f"Malformed media URL left unchanged: {e}", extra={"url": value[:120]})
            return url
        hostname = (parts.hostname or "").lower()
        if hostname not in set(media_hosts) or not parts.path.startswith(f"{MEDIA_PATH}/"):
            return url
        value = prefix + parts.path[len(MEDIA_PATH):]
        if parts.query:
            value = f"{value}?{parts.query}"
    elif value.startswith(f"{MEDIA_PATH}/"):
        value = prefix + value[len(MEDIA_PATH):]
    elif not value.startswith(f"{prefix}/"):
        return url

    return collapse_double_prefix(value, prefix)


class MediaRewriter:
    """Rewrites src, srcset and CSS url() values inside a parsed fragment."""

    def __init__(
            self,
            cms_base: str | None = None,
            internal_hosts: Iterable[str] | None = None,
            prefix: str | None = None,
    ):
        cms_base = cms_base if cms_base is not None else settings.CMS_API_URL
        if internal_hosts is None:
            internal_hosts = settings.CMS_INTERNAL_HOSTS
        self.media_hosts = media_hosts_for(cms_base, internal_hosts)
        self.prefix = (prefix if prefix is not None else settings.MEDIA_PROXY_PREFIX).rstrip("/")

    def proxy(self, url: str | None) -> str | None:
        """Rewrite one URL."""
        return proxy_media_url(url, self.media_hosts, self.prefix)

    def rewrite_srcset(self, value: str) -> str:
        """Rewrite every candidate URL of a srcset value."""
        candidates = []
        changed = False
        for candidate in value.split(","):
            stripped = candidate.strip()
            if not stripped:
                continue
            # URL and descriptor may be separated by any whitespace
            parts = stripped.split(None, 1)
            url = parts[0]
            descriptor = parts[1].strip() if len(parts) > 1 else ""
            rewritten = self.proxy(url)
            changed = changed or rewritten != url
            candidates.append(f"{rewritten} {descriptor}".strip())
        return ", ".join(candidates) if changed else value

    def rewrite_css(self, css: str) -> str:
        """Rewrite url(...) references in CSS text."""

        def _replace(match: re.Match) -> str:
            quote, url = match.group(1), match.group(2)
            rewritten = self.proxy(url.strip())
            if rewritten == url.strip():
                return match.group(0)
            return f"url({quote}{rewritten}{quote})"

        return CSS_URL_PATTERN.sub(_replace, css)

    def visit(self, soup: BeautifulSoup) -> int:
        """
        Rewrite asset URLs in place.

        Returns:
            Number of attribute or text values that changed
        """
        changes = 0
        for tag in soup.find_all(True):
            src = tag.get("src")
            if isinstance(src, str) and src:
                rewritten = self.proxy(src)
                if rewritten != src:
                    tag["src"] = rewritten
                    changes += 1

            srcset = tag.get("srcset")
            if isinstance(srcset, str) and srcset:
                rewritten = self.rewrite_srcset(srcset)
                if rewritten != srcset:
                    tag["srcset"] = rewritten
                    changes += 1

            style = tag.get("style")
            if isinstance(style, str) and "url(" in style.lower():
                rewritten = self.rewrite_css(style)
                if rewritten != style:
                    tag["style"] = rewritten
                    changes += 1

            if tag.name == "style" and tag.string:
                css = str(tag.string)
                rewritten = self.rewrite_css(css)
                if rewritten != css:
                    tag.string = rewritten
                    changes += 1

        return changes

    def rewrite(self, html: str) -> str:
        """Rewrite asset URLs in an HTML fragment."""
        if not html:
            return ""
        try:
            soup = parse_fragment(html)
            if not self.visit(soup):
                return html
            return serialize(soup)
        except Exception as e:
            logger.warning(f"Media rewriting failed, fragment left unchanged: {e}")
            return html
