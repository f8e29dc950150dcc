"""Tests for the structured logging system (entitlement_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from entitlement_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    """Parse all JSON log lines from a stream."""
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "entitlement_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("ledger_built", extra={"line_count": 3, "category_id": "annual"})

        record = _parse_log(stream)
        assert record["line_count"] == 3
        assert record["category_id"] == "annual"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        LogContext.set(person_id="alice", year="2024")
        logger.info("test_msg")

        record = _parse_log(stream)
        assert record["person_id"] == "alice"
        assert record["year"] == "2024"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_kernel_exception_code_extracted(self):
        """Kernel exceptions carry .code attribute."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        from entitlement_kernel.exceptions import DuplicatePolicyError

        try:
            raise DuplicatePolicyError("alice", "annual", 2024)
        except DuplicatePolicyError:
            logger.error("policy_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "DUPLICATE_POLICY"
        assert record["exc_type"] == "DuplicatePolicyError"
        assert record["exc_person_id"] == "alice"
        assert record["exc_category_id"] == "annual"
        assert record["exc_year"] == 2024

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("bare_message")

        record = _parse_log(stream)
        assert "person_id" not in record
        assert "snapshot_id" not in record

    def test_decimal_and_date_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("with_values", extra={"used": Decimal("2.5"), "on": date(2024, 4, 1)})

        record = _parse_log(stream)
        assert record["used"] == "2.5"
        assert record["on"] == "2024-04-01"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # configure_logging defaults to INFO, so the debug line is dropped
        assert len(logs) == 2
        for record in logs:
            assert "ts" in record
            assert "level" in record
            assert "logger" in record
            assert "message" in record


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(person_id="x", year="2024")
        ctx = LogContext.get_all()
        assert ctx == {"person_id": "x", "year": "2024"}

    def test_clear(self):
        LogContext.set(person_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(person_id="outer")
        with LogContext.bind(person_id="inner"):
            assert LogContext.get_all()["person_id"] == "inner"
        assert LogContext.get_all()["person_id"] == "outer"

    def test_bind_restores_none(self):
        """bind() restores to None if there was no previous value."""
        assert "person_id" not in LogContext.get_all()
        with LogContext.bind(person_id="temp"):
            assert LogContext.get_all()["person_id"] == "temp"
        assert "person_id" not in LogContext.get_all()

    def test_bind_stringifies_year(self):
        with LogContext.bind(year=2024):
            assert LogContext.get_all()["year"] == "2024"

    def test_additive_set(self):
        LogContext.set(person_id="a")
        LogContext.set(snapshot_id="b")
        ctx = LogContext.get_all()
        assert ctx["person_id"] == "a"
        assert ctx["snapshot_id"] == "b"

    def test_all_fields(self):
        LogContext.set(
            request_id="r",
            person_id="p",
            snapshot_id="s",
            year="2024",
        )
        ctx = LogContext.get_all()
        assert len(ctx) == 4
        assert ctx["request_id"] == "r"
        assert ctx["snapshot_id"] == "s"


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        root = logging.getLogger("entitlement_kernel")
        assert h1 in root.handlers
        assert h2 not in root.handlers

    def test_get_logger_returns_child(self):
        logger = get_logger("engines.ledger")
        assert logger.name == "entitlement_kernel.engines.ledger"

    def test_logger_hierarchy(self):
        """Child loggers inherit the entitlement_kernel root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        child = get_logger("deep.nested.module")
        child.debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "entitlement_kernel.deep.nested.module"
