# -*- coding: utf-8 -*-
"""
Entry point to run the service via python -m cms_resolver.
"""
import uvicorn

from cms_resolver.config import settings


def main():
    """Start the Uvicorn server."""
    uvicorn.run(
        "cms_resolver.api:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
