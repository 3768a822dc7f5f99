# -*- coding: utf-8 -*-
"""
Async client for the Wagtail CMS API.

Features:
- Per-request timeout (a slow CMS never stalls page resolution)
- Retry with exponential backoff on transient failures (tenacity)
- Concurrency control via semaphore
"""
import asyncio
import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import settings
from .hosts import ensure_scheme

logger = logging.getLogger(__name__)

# Status codes worth retrying
RETRYABLE_STATUS_CODES = {429, 502, 503, 504}


class CMSLookupError(Exception):
    """A CMS lookup failed (network error, non-2xx status, malformed JSON)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RetryableError(Exception):
    """Exception that triggers retry."""

    pass


class CMSClient:
    """
    HTTP client for CMS lookups.

    A client owns one ``httpx.AsyncClient``; call ``start()``/``stop()`` from
    the application lifecycle. A client used without ``start()`` creates its
    HTTP client lazily on first request.
    """

    def __init__(
            self,
            base_url: str | None = None,
            timeout: int | None = None,
            max_attempts: int | None = None,
            max_concurrent: int | None = None,
            transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the CMS client.

        Args:
            base_url: CMS base URL. Defaults to settings.CMS_API_URL.
            timeout: Request timeout in milliseconds. Defaults to settings.CMS_TIMEOUT.
            max_attempts: Attempts per request. Defaults to settings.RETRY_MAX_ATTEMPTS.
            max_concurrent: Maximum in-flight requests. Defaults to settings.MAX_CONCURRENT_LOOKUPS.
            transport: Optional httpx transport (used by tests to mock the CMS).
        """
        self.base_url = ensure_scheme(base_url or settings.CMS_API_URL)
        self.timeout = timeout or settings.CMS_TIMEOUT
        self.max_attempts = max_attempts or settings.RETRY_MAX_ATTEMPTS
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent or settings.MAX_CONCURRENT_LOOKUPS)

    async def start(self) -> None:
        """Initialize the HTTP client."""
        if self._client is None:
            self._client = self._build_client()
        logger.info("CMS client initialized", extra={"cms_base": self.base_url})

    async def stop(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        logger.info("CMS client closed")

    @property
    def is_ready(self) -> bool:
        return self._client is not None

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(
                self.timeout / 1000, connect=settings.CMS_CONNECT_TIMEOUT / 1000
            ),
            follow_redirects=True,
            headers={"Accept": "application/json"},
            transport=self._transport,
        )

    def url_for(self, path: str) -> str:
        """Absolute URL of a CMS path."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        GET a CMS path and decode its JSON body.

        Transient failures (transport errors, 429, 5xx gateway errors) are
        retried; everything else fails on the first attempt.

        Raises:
            CMSLookupError: if the lookup fails
        """
        if self._client is None:
            self._client = self._build_client()
        url = self.url_for(path)

        @retry(
            retry=retry_if_exception_type(RetryableError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                min=settings.RETRY_MIN_WAIT, max=settings.RETRY_MAX_WAIT
            ),
            reraise=True,
        )
        async def _inner() -> httpx.Response:
            try:
                response = await self._client.get(url, params=params)
            except httpx.TransportError as e:
                logger.warning(
                    "CMS request failed, retrying",
                    extra={"url": url[:120], "error": str(e)},
                )
                raise RetryableError(str(e) or e.__class__.__name__) from e
            if response.status_code in RETRYABLE_STATUS_CODES:
                raise RetryableError(f"HTTP {response.status_code}")
            return response

        async with self._semaphore:
            try:
                response = await _inner()
            except RetryableError as e:
                raise CMSLookupError(
                    f"Failed after {self.max_attempts} attempts: {e}"
                ) from e

        if response.status_code >= 400:
            raise CMSLookupError(
                f"HTTP {response.status_code} for {url}", status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise CMSLookupError(
                f"Malformed JSON from {url}", status_code=response.status_code
            ) from e

    async def get_image(self, image_id: str) -> dict[str, Any]:
        """Fetch image metadata: ``GET /api/v2/images/{id}/``."""
        data = await self.get_json(f"/api/v2/images/{image_id}/")
        if not isinstance(data, dict):
            raise CMSLookupError(f"Unexpected image payload for {image_id}")
        return data

    async def get_page(self, page_id: str) -> dict[str, Any]:
        """Fetch page metadata: ``GET /api/v2/pages/{id}/``."""
        data = await self.get_json(f"/api/v2/pages/{page_id}/")
        if not isinstance(data, dict):
            raise CMSLookupError(f"Unexpected page payload for {page_id}")
        return data


def document_url(document_id: str, base_url: str) -> str:
    """Direct view/download URL of a CMS document."""
    return f"{ensure_scheme(base_url)}/documents/{document_id}/"


# Shared client for the HTTP service
cms_client = CMSClient()
