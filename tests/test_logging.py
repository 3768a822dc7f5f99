# -*- coding: utf-8 -*-
"""
Tests for structured logging and request tracking.
"""
import io
import json
import logging
import uuid

from cms_resolver import __version__
from cms_resolver.logging_config import SERVICE_NAME, RequestIDFilter, build_handler
from cms_resolver.middleware import accept_request_id, get_request_id, request_id_ctx


def _emit(message, **extra):
    stream = io.StringIO()
    log = logging.getLogger("cms_resolver.tests.logging")
    log.propagate = False
    log.setLevel(logging.INFO)
    handler = build_handler(stream)
    log.addHandler(handler)
    try:
        log.info(message, extra=extra)
    finally:
        log.removeHandler(handler)
    return json.loads(stream.getvalue())


class TestJsonFormatter:
    """Tests for the resolver JSON log format."""

    def test_service_fields(self):
        """Every line should name the service, its version and the logger."""
        record = _emit("Content resolved", content_type="conditions")

        assert record["message"] == "Content resolved"
        assert record["service"] == SERVICE_NAME
        assert record["version"] == __version__
        assert record["logger"] == "cms_resolver.tests.logging"
        assert record["level"] == "INFO"
        assert record["content_type"] == "conditions"

    def test_request_id_outside_request(self):
        """Lines logged outside a request should carry a placeholder id."""
        assert _emit("startup")["request_id"] == "-"

    def test_request_id_inside_request(self):
        """Lines logged during a request should carry its id."""
        token = request_id_ctx.set("req-7")
        try:
            assert _emit("lookup")["request_id"] == "req-7"
        finally:
            request_id_ctx.reset(token)


class TestRequestIDFilter:
    """Tests for RequestIDFilter."""

    def test_sets_request_id(self):
        """Should copy the current request id onto the record."""
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        token = request_id_ctx.set("abc")
        try:
            assert RequestIDFilter().filter(record) is True
        finally:
            request_id_ctx.reset(token)

        assert record.request_id == "abc"
        assert get_request_id() is None


class TestAcceptRequestId:
    """Tests for accept_request_id."""

    def test_keeps_well_formed_id(self):
        """Should reuse a caller id made of safe characters."""
        assert accept_request_id("abc-123.x:y_z") == "abc-123.x:y_z"

    def test_replaces_unsafe_id(self):
        """Should mint a fresh id for missing, oversized or unsafe values."""
        for value in (None, "", "a b", "x\ny", "abc\n", "a" * 129):
            minted = accept_request_id(value)
            assert minted != value
            assert str(uuid.UUID(minted)) == minted
