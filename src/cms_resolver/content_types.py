# -*- coding: utf-8 -*-
"""
Content-type registry.

Every content type shares the same resolution pipeline; what differs is
where the CMS serves it, which fields hold rich text, and which field gets a
table of contents.
"""
from dataclasses import dataclass

from .config import settings
from .endpoints import EndpointChain, RequestDescriptor, unwrap_listing
from .routes import parse_id_slug


class UnknownContentTypeError(KeyError):
    """The requested content type is not registered."""

    pass


@dataclass(frozen=True)
class ContentType:
    """A CMS content type served by the site."""

    name: str
    fields: tuple[str, ...]
    body_field: str
    detail_paths: tuple[str, ...]
    listing_paths: tuple[str, ...]
    # Tried first when the slug ends in a numeric id (name-123)
    id_paths: tuple[str, ...] = ()
    page_type: str | None = None

    def detail_chain(self, slug: str, lang: str | None = None) -> EndpointChain:
        """Candidates for one item, most specific first."""
        lang = lang or settings.DEFAULT_LANG
        params = {"lang": lang}
        candidates = []

        _, item_id = parse_id_slug(slug)
        if item_id:
            candidates.extend(
                RequestDescriptor(path.format(id=item_id), params) for path in self.id_paths
            )
        candidates.extend(
            RequestDescriptor(path.format(slug=slug), params) for path in self.detail_paths
        )
        if self.page_type:
            candidates.append(
                RequestDescriptor(
                    "/api/v2/pages/",
                    {"type": self.page_type, "slug": slug, "fields": "*"},
                )
            )
        return EndpointChain(name=f"{self.name}:detail", candidates=candidates)

    def listing_chain(self, limit: int = 100, lang: str | None = None) -> EndpointChain:
        """Candidates for the item listing."""
        params = {"limit": limit, "lang": lang or settings.DEFAULT_LANG}
        candidates = [RequestDescriptor(path, params) for path in self.listing_paths]
        if self.page_type:
            candidates.append(
                RequestDescriptor(
                    "/api/v2/pages/",
                    {"type": self.page_type, "fields": "title,slug,id", "limit": limit},
                )
            )
        return EndpointChain(name=f"{self.name}:listing", candidates=candidates, extract=unwrap_listing)

    def field_value(self, item: dict, name: str) -> str:
        """Raw HTML of a rich-text field."""
        value = item.get(name)
        return value if isinstance(value, str) else ""


def _topic_paths(section: str) -> tuple[str, ...]:
    return (
        f"/api/{section}/topics/{{slug}}",
        f"/api/{section}/topics/{{slug}}/",
        f"/api/v1/{section}/topics/{{slug}}",
        f"/api/v1/{section}/topics/{{slug}}/",
        f"/{section}/topics/{{slug}}",
        f"/{section}/topics/{{slug}}/",
    )


CONTENT_TYPES: dict[str, ContentType] = {
    "conditions": ContentType(
        name="conditions",
        fields=("overview", "causes", "symptoms", "treatments", "complications", "references"),
        body_field="overview",
        detail_paths=(
            "/api/conditions/{slug}/",
            "/api/conditions/{slug}",
            "/api/conditions/detail/{slug}/",
        ),
        listing_paths=(
            "/api/conditions/",
            "/api/conditions",
            "/api/conditions/index/",
            "/api/conditions/latest/",
        ),
        id_paths=("/api/v2/pages/{id}/", "/api/conditions/by_id/{id}/"),
        page_type="conditions.ConditionPage",
    ),
    "drugs": ContentType(
        name="drugs",
        fields=("overview", "uses", "dosage", "side_effects", "warnings"),
        body_field="overview",
        detail_paths=("/api/drugs/{slug}/", "/api/drugs/{slug}"),
        listing_paths=("/api/drugs/", "/api/drugs", "/api/drugs/index/"),
    ),
    "wellness": ContentType(
        name="wellness",
        fields=("body", "benefits", "tips", "references"),
        body_field="body",
        detail_paths=_topic_paths("wellness"),
        listing_paths=("/api/wellness/topics/", "/api/v1/wellness/topics/", "/wellness/topics/"),
    ),
    "ayurveda": ContentType(
        name="ayurveda",
        fields=("body", "benefits", "references"),
        body_field="body",
        detail_paths=_topic_paths("ayurveda"),
        listing_paths=(
            "/api/ayurveda/topics/",
            "/api/v1/ayurveda/topics/",
            "/api/v1/ayurveda/",
            "/ayurveda/topics/",
        ),
    ),
    "yoga": ContentType(
        name="yoga",
        fields=("body", "benefits", "instructions", "references"),
        body_field="body",
        detail_paths=_topic_paths("yoga"),
        listing_paths=("/api/yoga/topics/", "/api/v1/yoga/topics/", "/yoga/topics/"),
    ),
}

# Site section names that differ from the registry key
CONTENT_TYPE_ALIASES = {"yoga-exercise": "yoga"}


def get_content_type(name: str) -> ContentType:
    """Look up a registered content type by name or site section."""
    key = CONTENT_TYPE_ALIASES.get(name, name)
    try:
        return CONTENT_TYPES[key]
    except KeyError:
        raise UnknownContentTypeError(name) from None
