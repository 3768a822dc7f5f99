# -*- coding: utf-8 -*-
"""
Resolver service configuration using Pydantic BaseSettings.
"""
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central service configuration loaded from environment variables.
    Values are validated and type cast by BaseSettings and may also be
    read from a .env file.
    """

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8002

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # ==========================================================================
    # CMS
    # ==========================================================================

    # Base URL used for lookups issued by this service (server context)
    CMS_API_URL: str = "http://127.0.0.1:8001"

    # Explicit public origin for URLs emitted into HTML. Takes precedence
    # over the host-substituted CMS_API_URL when set.
    CMS_PUBLIC_ORIGIN: str = ""

    # Externally visible hostname substituted for loopback CMS hosts
    PUBLIC_HOSTNAME: str = ""

    # Container-internal hostnames treated like loopback addresses
    CMS_INTERNAL_HOSTS: List[str] = ["cms", "backend", "wagtail", "host.docker.internal"]

    # Hostnames served by the public site (links to them stay in the same tab)
    SITE_HOSTS: List[str] = ["niinfomed.com", "www.niinfomed.com"]

    DEFAULT_LANG: str = "en"

    # Timeouts (in milliseconds)
    CMS_TIMEOUT: int = 10000
    CMS_CONNECT_TIMEOUT: int = 5000

    # Retry
    RETRY_MAX_ATTEMPTS: int = 2
    RETRY_MIN_WAIT: float = 0.2
    RETRY_MAX_WAIT: float = 2.0

    # Concurrency
    MAX_CONCURRENT_LOOKUPS: int = 10

    # ==========================================================================
    # Rich text output
    # ==========================================================================

    # Path prefix the site proxies to the CMS /media/ directory
    MEDIA_PROXY_PREFIX: str = "/cms-media"

    # What to do with embedded images the CMS cannot resolve
    UNRESOLVED_EMBED_POLICY: Literal["remove", "notice"] = "remove"

    DEFAULT_IMAGE_ALT: str = "Image"
    UNAVAILABLE_IMAGE_TEXT: str = "Image unavailable"

    # ==========================================================================
    # HTTP surface
    # ==========================================================================

    # API Documentation (disable in production)
    DOCS_ENABLED: bool = True

    # CORS
    CORS_ORIGINS: List[str] = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = False

    # Request tracking
    REQUEST_ID_HEADER: str = "X-Request-ID"

    # Compression
    GZIP_MIN_SIZE: int = 1000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


# Global configuration instance
settings = Settings()
