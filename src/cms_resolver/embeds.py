# -*- coding: utf-8 -*-
"""
Embedded image resolution.

Wagtail stores images inside rich text as opaque placeholders::

    <embed alt="Knee joint" embedtype="image" format="fullwidth" id="42"/>

Each unique id is looked up once through the CMS image API and every
placeholder bearing it is replaced by a renderable ``<img>``.
"""
import logging
from typing import Any

from bs4 import BeautifulSoup, Tag

from .cache import ResolutionCache
from .cms_client import CMSClient, CMSLookupError
from .config import settings
from .media import MediaRewriter
from .references import EmbedReference, ResolvedAsset

logger = logging.getLogger(__name__)


def _is_image_embed(tag: Tag) -> bool:
    return (tag.get("embedtype") or "").lower() == "image"


def extract_embed_references(soup: BeautifulSoup) -> list[EmbedReference]:
    """Unique embedded image references, in document order."""
    seen = set()
    references = []
    for embed in soup.find_all("embed"):
        if not _is_image_embed(embed):
            continue
        embed_id = (embed.get("id") or "").strip()
        if embed_id and embed_id not in seen:
            seen.add(embed_id)
            references.append(EmbedReference(id=embed_id))
    return references


def pick_image_url(data: dict[str, Any]) -> str | None:
    """
    Choose the best URL from an image API payload.

    Preference: download URL, preview URL, original rendition.
    """
    meta = data.get("meta")
    if not isinstance(meta, dict):
        meta = {}
    original = meta.get("original") or data.get("original")
    for candidate in (
            meta.get("download_url"),
            meta.get("preview_url"),
            original.get("url") if isinstance(original, dict) else None,
    ):
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None


class EmbedResolver:
    """Resolves and substitutes embedded image placeholders."""

    def __init__(
            self,
            client: CMSClient,
            media: MediaRewriter,
            policy: str | None = None,
            default_alt: str | None = None,
            unavailable_text: str | None = None,
    ):
        self.client = client
        self.media = media
        self.policy = policy or settings.UNRESOLVED_EMBED_POLICY
        self.default_alt = default_alt if default_alt is not None else settings.DEFAULT_IMAGE_ALT
        self.unavailable_text = unavailable_text or settings.UNAVAILABLE_IMAGE_TEXT

    async def lookup(self, image_id: str) -> ResolvedAsset | None:
        """Resolve one image id, or None when the CMS cannot provide a URL."""
        try:
            data = await self.client.get_image(image_id)
        except CMSLookupError as e:
            logger.warning(
                "Embedded image lookup failed",
                extra={"image_id": image_id, "error": str(e), "status_code": e.status_code},
            )
            return None

        url = pick_image_url(data)
        if not url:
            logger.warning("Image payload has no usable URL", extra={"image_id": image_id})
            return None

        if url.startswith("/") and not url.startswith("//"):
            url = self.client.url_for(url)

        title = data.get("title")
        return ResolvedAsset(
            id=image_id,
            url=url,
            title=title if isinstance(title, str) and title else None,
            width=data.get("width") if isinstance(data.get("width"), int) else None,
            height=data.get("height") if isinstance(data.get("height"), int) else None,
        )

    async def resolve(
            self, soup: BeautifulSoup, cache: ResolutionCache
    ) -> dict[str, ResolvedAsset | None]:
        """Look up every unique embed id of a parsed fragment."""
        references = extract_embed_references(soup)
        if not references:
            return {}
        logger.debug(f"Found {len(references)} unique embedded images")
        return await cache.resolve_many("image", [r.id for r in references], self.lookup)

    def _image_tag(self, soup: BeautifulSoup, embed: Tag, asset: ResolvedAsset) -> Tag:
        classes = ["richtext-image"]
        image_format = (embed.get("format") or "").strip()
        if image_format:
            classes.append(image_format)

        attrs = {
            "src": self.media.proxy(asset.url),
            "alt": (embed.get("alt") or "").strip() or asset.title or self.default_alt,
            "class": " ".join(classes),
            "loading": "lazy",
            "decoding": "async",
        }
        if asset.width and asset.height:
            attrs["width"] = str(asset.width)
            attrs["height"] = str(asset.height)
        return soup.new_tag("img", attrs=attrs)

    def _notice_tag(self, soup: BeautifulSoup) -> Tag:
        notice = soup.new_tag("span", attrs={"class": "richtext-image-unavailable", "role": "note"})
        notice.string = self.unavailable_text
        return notice

    def substitute(self, soup: BeautifulSoup, assets: dict[str, ResolvedAsset | None]) -> int:
        """
        Replace every image embed with an ``<img>`` or the unresolved fallback.

        Returns:
            Number of placeholders replaced by images
        """
        replaced = 0
        for embed in soup.find_all("embed"):
            if not _is_image_embed(embed):
                continue
            asset = assets.get((embed.get("id") or "").strip())
            if asset is not None:
                embed.replace_with(self._image_tag(soup, embed, asset))
                replaced += 1
            elif self.policy == "notice":
                embed.replace_with(self._notice_tag(soup))
            else:
                embed.decompose()
        return replaced

    @staticmethod
    def neutralize(soup: BeautifulSoup) -> None:
        """Drop every image embed without resolving it."""
        for embed in soup.find_all("embed"):
            if _is_image_embed(embed):
                embed.decompose()
