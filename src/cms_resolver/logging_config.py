# -*- coding: utf-8 -*-
"""
Structured JSON logging configuration.

Each line carries the service name and version so resolver logs can be told
apart from the CMS logs they are usually shipped next to.
"""
import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from . import __version__
from .config import settings
from .middleware import get_request_id

SERVICE_NAME = "cms-resolver"

LOG_FORMAT = "%(timestamp)s %(level)s %(name)s %(request_id)s %(message)s"

# Loggers that are chatty at INFO; the request middleware already logs access
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


class RequestIDFilter(logging.Filter):
    """Add request_id to log records."""

    def filter(self, record):
        record.request_id = get_request_id() or "-"
        return True


class ResolverJsonFormatter(JsonFormatter):
    """JSON formatter adding level, logger, request_id and service identity."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["request_id"] = getattr(record, "request_id", "-")
        log_record["service"] = SERVICE_NAME
        log_record["version"] = __version__


def build_handler(stream=None) -> logging.Handler:
    """JSON handler with the request id filter attached."""
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        ResolverJsonFormatter(
            fmt=LOG_FORMAT,
            rename_fields={"timestamp": "@timestamp", "levelname": "level"},
        )
    )
    handler.addFilter(RequestIDFilter())
    return handler


def setup_logging(level: str | None = None, stream=None):
    """Configure structured JSON logging on the root logger."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level or settings.LOG_LEVEL))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(build_handler(stream))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
