# -*- coding: utf-8 -*-
"""
Tests for the CMS HTTP client and the per-item resolution cache.
"""
import asyncio

import httpx
import pytest

from cms_resolver.cache import ResolutionCache
from cms_resolver.cms_client import CMSClient, CMSLookupError, document_url


def _client(fake, max_attempts=1):
    return CMSClient(
        base_url="http://127.0.0.1:8001",
        max_attempts=max_attempts,
        transport=httpx.MockTransport(fake.handler),
    )


class TestHelpers:
    """Tests for URL helpers."""

    def test_url_for(self):
        """Should join paths onto the base URL."""
        client = CMSClient(base_url="127.0.0.1:8001/")
        assert client.url_for("/api/v2/images/1/") == "http://127.0.0.1:8001/api/v2/images/1/"
        assert client.url_for("https://cdn.example.com/x") == "https://cdn.example.com/x"

    def test_document_url(self):
        """Should build the document download URL."""
        assert document_url("3", "http://example.org:8001/") == "http://example.org:8001/documents/3/"


@pytest.mark.asyncio
class TestCMSClient:
    """Async tests for CMSClient."""

    async def test_get_json(self, fake_cms):
        """Should decode JSON and pass query parameters."""
        fake_cms.add("/api/v2/pages/", {"items": []})
        client = _client(fake_cms)

        data = await client.get_json("/api/v2/pages/", params={"slug": "asthma"})

        assert data == {"items": []}
        assert fake_cms.requests[0].url.params["slug"] == "asthma"
        await client.stop()

    async def test_not_found_raises(self, fake_cms):
        """A 404 should raise CMSLookupError with the status code."""
        client = _client(fake_cms)

        with pytest.raises(CMSLookupError) as exc_info:
            await client.get_image("99")

        assert exc_info.value.status_code == 404

    async def test_malformed_json_raises(self, fake_cms):
        """A non-JSON body should raise CMSLookupError."""
        fake_cms.add("/api/v2/pages/1/", "<html>oops</html>")

        with pytest.raises(CMSLookupError):
            await _client(fake_cms).get_page("1")

    async def test_non_object_payload_raises(self, fake_cms):
        """An image payload that is not an object should be rejected."""
        fake_cms.add("/api/v2/images/1/", [1, 2])

        with pytest.raises(CMSLookupError):
            await _client(fake_cms).get_image("1")

    async def test_retries_gateway_errors(self, fake_cms, monkeypatch):
        """Retryable statuses should be retried up to max_attempts."""
        monkeypatch.setattr("cms_resolver.cms_client.settings.RETRY_MIN_WAIT", 0)
        monkeypatch.setattr("cms_resolver.cms_client.settings.RETRY_MAX_WAIT", 0)
        fake_cms.add("/api/v2/images/1/", {"detail": "busy"}, status_code=503)

        with pytest.raises(CMSLookupError):
            await _client(fake_cms, max_attempts=3).get_image("1")

        assert fake_cms.calls["/api/v2/images/1/"] == 3

    async def test_client_errors_not_retried(self, fake_cms, monkeypatch):
        """Non-retryable statuses should fail on the first attempt."""
        monkeypatch.setattr("cms_resolver.cms_client.settings.RETRY_MIN_WAIT", 0)
        monkeypatch.setattr("cms_resolver.cms_client.settings.RETRY_MAX_WAIT", 0)

        with pytest.raises(CMSLookupError):
            await _client(fake_cms, max_attempts=3).get_page("1")

        assert fake_cms.calls["/api/v2/pages/1/"] == 1

    async def test_transport_error(self, fake_cms):
        """Transport errors should surface as CMSLookupError."""
        fake_cms.add("/api/v2/pages/1/", httpx.ConnectError("refused"))

        with pytest.raises(CMSLookupError):
            await _client(fake_cms).get_page("1")

    async def test_start_stop(self, fake_cms):
        """Should report readiness across the lifecycle."""
        client = _client(fake_cms)
        assert client.is_ready is False

        await client.start()
        assert client.is_ready is True

        await client.stop()
        assert client.is_ready is False


@pytest.mark.asyncio
class TestResolutionCache:
    """Async tests for ResolutionCache."""

    async def test_concurrent_requests_share_one_task(self):
        """Concurrent requests for one key should run the resolver once."""
        cache = ResolutionCache()
        calls = []

        async def resolver():
            calls.append(1)
            await asyncio.sleep(0)
            return "value"

        results = await asyncio.gather(
            *(cache.get_or_resolve(("image", "1"), resolver) for _ in range(5))
        )

        assert results == ["value"] * 5
        assert len(calls) == 1
        assert ("image", "1") in cache

    async def test_resolve_many_keeps_id_order(self):
        """Should map every id to its result regardless of completion order."""
        cache = ResolutionCache()

        async def resolver(ref_id):
            await asyncio.sleep(0.01 if ref_id == "1" else 0)
            return f"resolved-{ref_id}"

        results = await cache.resolve_many("page", ["1", "2"], resolver)

        assert list(results.items()) == [("1", "resolved-1"), ("2", "resolved-2")]
        assert len(cache) == 2

    async def test_kinds_do_not_collide(self):
        """Image 1 and page 1 are different keys."""
        cache = ResolutionCache()

        async def image(ref_id):
            return "image"

        async def page(ref_id):
            return "page"

        assert await cache.resolve_many("image", ["1"], image) == {"1": "image"}
        assert await cache.resolve_many("page", ["1"], page) == {"1": "page"}
