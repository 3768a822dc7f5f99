# -*- coding: utf-8 -*-
"""
Pytest configuration and fixtures.

The CMS is replaced by an ``httpx.MockTransport`` serving canned JSON and
counting requests per path.
"""
from collections import Counter

import httpx
import pytest
from fastapi.testclient import TestClient

from cms_resolver.api import app
from cms_resolver.cms_client import CMSClient
from cms_resolver.pipeline import ResolutionPipeline
from cms_resolver.service import ContentService, get_content_service

CMS_BASE = "http://127.0.0.1:8001"

KNEE_IMAGE = {
    "id": 42,
    "title": "Knee joint",
    "width": 800,
    "height": 600,
    "meta": {
        "type": "wagtailimages.Image",
        "download_url": f"{CMS_BASE}/media/original_images/knee.jpg",
    },
}

DIABETES_PAGE = {
    "id": 7,
    "title": "Type 1 diabetes",
    "meta": {"type": "conditions.ConditionPage", "slug": "type-1-diabetes"},
}


class FakeCMS:
    """Canned CMS responses keyed by URL path."""

    def __init__(self):
        self.routes: dict[str, tuple[int, object]] = {}
        self.calls: Counter = Counter()
        self.requests: list[httpx.Request] = []

    def add(self, path: str, payload: object, status_code: int = 200) -> None:
        self.routes[path] = (status_code, payload)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls[request.url.path] += 1
        self.requests.append(request)
        if request.url.path not in self.routes:
            return httpx.Response(404, json={"detail": "Not found."})
        status_code, payload = self.routes[request.url.path]
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, str):
            return httpx.Response(status_code, text=payload)
        return httpx.Response(status_code, json=payload)

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


@pytest.fixture
def fake_cms():
    """CMS with one image (42) and one condition page (7)."""
    cms = FakeCMS()
    cms.add("/api/v2/images/42/", KNEE_IMAGE)
    cms.add("/api/v2/pages/7/", DIABETES_PAGE)
    return cms


@pytest.fixture
def cms(fake_cms):
    """CMS client talking to the fake CMS, without retries."""
    return CMSClient(
        base_url=CMS_BASE,
        max_attempts=1,
        transport=httpx.MockTransport(fake_cms.handler),
    )


@pytest.fixture
def pipeline(cms):
    """Resolution pipeline over the fake CMS."""
    return ResolutionPipeline(cms)


@pytest.fixture
def service(cms):
    """Content service over the fake CMS."""
    return ContentService(cms)


@pytest.fixture
def client(service):
    """FastAPI test client with the content service bound to the fake CMS."""
    app.dependency_overrides[get_content_service] = lambda: service
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
