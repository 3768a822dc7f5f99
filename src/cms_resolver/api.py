# -*- coding: utf-8 -*-
"""
FastAPI API for the rich-text resolver service.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from . import __version__
from .cms_client import cms_client
from .config import settings
from .content_types import UnknownContentTypeError
from .endpoints import ContentNotFoundError
from .logging_config import setup_logging
from .middleware import RequestIDMiddleware
from .models import (
    ContentResponse,
    HealthResponse,
    ListingResponse,
    OutlineEntry,
    ResolveRequest,
    ResolveResponse,
)
from .service import ContentService, get_content_service

# Setup structured logging
setup_logging()
logger = logging.getLogger(__name__)


# noinspection PyUnusedLocal
@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application lifecycle management."""
    logger.info("Starting CMS resolver service", extra={"version": __version__})

    # Startup
    await cms_client.start()

    yield

    # Shutdown
    logger.info("Shutting down CMS resolver service")
    await cms_client.stop()


app = FastAPI(
    title="CMS Rich-Text Resolver",
    description="Resolves Wagtail rich text (embeds, internal links, media URLs) into site-ready HTML",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.DOCS_ENABLED else None,
    redoc_url="/redoc" if settings.DOCS_ENABLED else None,
)

# Middleware stack (order matters: last added = first executed)
app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MIN_SIZE)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Service health endpoint."""
    return HealthResponse(
        status="healthy",
        cms_ready=cms_client.is_ready,
        cms_base=cms_client.base_url,
        version=__version__,
    )


@app.post("/resolve", response_model=ResolveResponse)
async def resolve_fragment(
        request: ResolveRequest,
        service: ContentService = Depends(get_content_service),
) -> ResolveResponse:
    """
    Resolve one rich-text fragment.

    - **html**: Raw CMS rich text
    - **public_hostname**: Hostname substituted for internal CMS hosts
    - **extract_toc**: Inject heading ids and return the outline
    """
    logger.info(
        "Resolve request received",
        extra={"field": request.field, "length": len(request.html)},
    )
    resolved = await service.resolve_html(
        request.html,
        field=request.field,
        public_hostname=request.public_hostname,
        extract_toc=request.extract_toc,
    )
    return ResolveResponse.from_field(resolved)


@app.get("/content/{content_type}/{slug}", response_model=ContentResponse)
async def get_content(
        content_type: str,
        slug: str,
        host: str | None = Query(default=None, description="Public hostname of the site"),
        lang: str | None = Query(default=None),
        service: ContentService = Depends(get_content_service),
) -> ContentResponse:
    """Fetch a content item and return its resolved rich-text fields."""
    try:
        content = await service.get_content(content_type, slug, public_hostname=host, lang=lang)
    except UnknownContentTypeError:
        raise HTTPException(status_code=404, detail=f"Unknown content type: {content_type}")
    except ContentNotFoundError as e:
        logger.info(
            "Content not found",
            extra={"content_type": content_type, "slug": slug, "attempted": len(e.attempted)},
        )
        raise HTTPException(status_code=404, detail=f"{content_type}/{slug} not found")

    return ContentResponse(
        content_type=content.content_type,
        slug=content.slug,
        fields={name: ResolveResponse.from_field(f) for name, f in content.fields.items()},
        toc=[OutlineEntry.from_entry(e) for e in content.toc],
        item=content.item,
    )


@app.get("/content/{content_type}", response_model=ListingResponse)
async def list_content(
        content_type: str,
        limit: int = Query(default=100, ge=1, le=500),
        lang: str | None = Query(default=None),
        service: ContentService = Depends(get_content_service),
) -> ListingResponse:
    """List the items of a content type as returned by the CMS."""
    try:
        items = await service.list_content(content_type, limit=limit, lang=lang)
    except UnknownContentTypeError:
        raise HTTPException(status_code=404, detail=f"Unknown content type: {content_type}")
    return ListingResponse(content_type=content_type, count=len(items), items=items)
