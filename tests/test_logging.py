"""Tests for logging setup."""

import io
import json
import logging

import pytest

from query_builder.config import LoggingConfig
from query_builder.processor import SelectionStore
from query_builder.utils.logging import (
    StandardFormatter,
    StructuredFormatter,
    get_session_logger,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, (StandardFormatter, StructuredFormatter)):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def _last_json(stream):
    return json.loads(stream.getvalue().strip().splitlines()[-1])


def test_standard_format():
    stream = io.StringIO()
    setup_logging(LoggingConfig(level="DEBUG"), stream=stream)

    logging.getLogger("query_builder.test").debug("rendered query")

    assert stream.getvalue().rstrip().endswith("query_builder.test - DEBUG - rendered query")


def test_standard_format_appends_builder_context():
    stream = io.StringIO()
    setup_logging(LoggingConfig(level="DEBUG"), stream=stream)

    log = get_session_logger("query_builder.test", "abc123")
    log.debug("add_table: no change", extra={"operation": "add_table", "version": 4})

    assert stream.getvalue().rstrip().endswith(
        "add_table: no change [session=abc123 version=4 operation=add_table]"
    )


def test_structured_format_includes_session():
    stream = io.StringIO()
    setup_logging(LoggingConfig(level="INFO", structured=True), stream=stream)

    get_session_logger("query_builder.test", "abc123").info("session started")

    record = _last_json(stream)
    assert record["message"] == "session started"
    assert record["level"] == "INFO"
    assert record["logger"] == "query_builder.test"
    assert record["session"] == "abc123"
    assert "version" not in record
    assert "operation" not in record


def test_structured_format_includes_store_activity(catalog):
    stream = io.StringIO()
    setup_logging(LoggingConfig(level="DEBUG", structured=True), stream=stream)

    store = SelectionStore(catalog, session="feed0002")
    store.add_table("users")
    store.add_table("users")

    record = _last_json(stream)
    assert record["message"] == "add_table: no change"
    assert record["session"] == "feed0002"
    assert record["version"] == 1
    assert record["operation"] == "add_table"


def test_per_call_extra_overrides_adapter_context():
    stream = io.StringIO()
    setup_logging(LoggingConfig(level="INFO", structured=True), stream=stream)

    log = get_session_logger("query_builder.test", "abc123")
    log.info("handed over", extra={"session": "other"})

    assert _last_json(stream)["session"] == "other"
    assert log.session == "abc123"


def test_session_id_is_generated_when_missing():
    first = get_session_logger("query_builder.test")
    second = get_session_logger("query_builder.test")
    assert len(first.session) == 8
    assert first.session != second.session


def test_structured_format_includes_exception():
    stream = io.StringIO()
    setup_logging(LoggingConfig(level="INFO", structured=True), stream=stream)

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logging.getLogger("query_builder.test").exception("failed")

    record = _last_json(stream)
    assert record["message"] == "failed"
    assert "RuntimeError: boom" in record["exception"]


def test_level_filters_records():
    stream = io.StringIO()
    setup_logging(LoggingConfig(level="WARNING"), stream=stream)

    logging.getLogger("query_builder.test").info("hidden")

    assert stream.getvalue() == ""


def test_log_file(tmp_path):
    log_file = tmp_path / "qb.log"
    setup_logging(
        LoggingConfig(level="INFO", log_file=str(log_file)), stream=io.StringIO()
    )

    logging.getLogger("query_builder.test").info("to file")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "to file" in log_file.read_text()
