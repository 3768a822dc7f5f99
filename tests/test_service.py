# -*- coding: utf-8 -*-
"""
Tests for the content service.
"""
import pytest

from cms_resolver.content_types import UnknownContentTypeError
from cms_resolver.endpoints import ContentNotFoundError

CONDITION = {
    "id": 21,
    "slug": "asthma",
    "title": "Asthma",
    "image": "http://127.0.0.1:8001/media/images/asthma.jpg",
    "overview": '<h2>What is asthma</h2><embed embedtype="image" id="42"/>',
    "causes": '<p>Linked to <a linktype="page" id="7">diabetes</a>.</p><embed embedtype="image" id="42"/>',
    "symptoms": None,
}


@pytest.mark.asyncio
class TestContentService:
    """Async tests for ContentService."""

    async def test_get_content(self, service, fake_cms):
        """Should fetch the item and resolve every rich-text field."""
        fake_cms.add("/api/conditions/asthma/", CONDITION)

        content = await service.get_content("conditions", "asthma")

        assert content.content_type == "conditions"
        assert content.slug == "asthma"
        assert set(content.fields) == {"overview", "causes"}
        assert [e.anchor_id for e in content.toc] == ["what-is-asthma"]
        assert 'href="/conditions/type-1-diabetes"' in content.fields["causes"].html
        assert fake_cms.calls["/api/v2/images/42/"] == 1

    async def test_metadata(self, service, fake_cms):
        """Metadata should exclude rich text and proxy single image fields."""
        fake_cms.add("/api/conditions/asthma/", CONDITION)

        content = await service.get_content("conditions", "asthma")

        assert content.item["title"] == "Asthma"
        assert content.item["image"] == "/cms-media/images/asthma.jpg"
        assert "overview" not in content.item

    async def test_falls_through_to_pages_api(self, service, fake_cms):
        """Should try the pages API when the type endpoints miss."""
        fake_cms.add("/api/v2/pages/", {"meta": {"total_count": 1}, "items": [CONDITION]})

        content = await service.get_content("conditions", "asthma")

        assert content.fields["overview"].degraded is False
        assert fake_cms.calls["/api/conditions/asthma/"] == 1

    async def test_not_found(self, service):
        """Should raise ContentNotFoundError when no endpoint has the item."""
        with pytest.raises(ContentNotFoundError):
            await service.get_content("drugs", "unknown-drug")

    async def test_unknown_type(self, service):
        """Should raise UnknownContentTypeError for unregistered types."""
        with pytest.raises(UnknownContentTypeError):
            await service.get_content("recipes", "soup")

    async def test_list_content(self, service, fake_cms):
        """Should return the listing of the first working endpoint."""
        fake_cms.add("/api/v1/wellness/topics/", {"results": [{"slug": "sleep"}]})

        items = await service.list_content("wellness")

        assert items == [{"slug": "sleep"}]
        assert fake_cms.calls["/api/wellness/topics/"] == 1

    async def test_list_content_empty(self, service):
        """Should return an empty list when every listing endpoint fails."""
        assert await service.list_content("yoga") == []

    async def test_resolve_html(self, service):
        """Should resolve a standalone fragment."""
        result = await service.resolve_html('<a linktype="page" id="7">x</a>', field="body")
        assert result.html == '<a href="/conditions/type-1-diabetes">x</a>'
