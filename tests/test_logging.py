import logging
import sys

import orjson

from utils.logging import JsonFormatter, setup_logging


def _record(msg, *args, exc_info=None, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "utils.api_client", logging.WARNING, __file__, 10, msg, args, exc_info
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields() -> None:
    line = JsonFormatter().format(_record("sent user %s", "a@x.biz", email="a@x.biz", attempts=2))

    entry = orjson.loads(line)
    assert entry["message"] == "sent user a@x.biz"
    assert entry["level"] == "WARNING"
    assert entry["logger"] == "utils.api_client"
    assert entry["email"] == "a@x.biz"
    assert entry["attempts"] == 2
    assert "args" not in entry
    assert "ts" in entry


def test_json_formatter_renders_exceptions() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        exc_info = sys.exc_info()

    entry = orjson.loads(JsonFormatter().format(_record("failed", exc_info=exc_info)))

    assert "RuntimeError: boom" in entry["exc_info"]


def test_json_formatter_stringifies_unknown_types() -> None:
    entry = orjson.loads(JsonFormatter().format(_record("x", error=ValueError("bad"))))

    assert entry["error"] == "bad"


def test_setup_logging_replaces_previous_configuration(restore_root_logging) -> None:
    setup_logging(level="INFO", format_type="text")
    setup_logging(level="DEBUG", format_type="json")

    root = restore_root_logging
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert root.level == logging.DEBUG
