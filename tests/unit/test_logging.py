from __future__ import annotations

import json
import logging

from dic.utils.logging import _json_formatter, configure_logging

EXPECTED_INDEX = 3
EXPECTED_TIMEOUT = 5.0


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.index = EXPECTED_INDEX
    record.error = "lookup_failed"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["index"] == EXPECTED_INDEX
    assert payload["error"] == "lookup_failed"
    assert "lineno" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"timeout": EXPECTED_TIMEOUT}

    payload = json.loads(_json_formatter(record))

    assert payload["timeout"] == EXPECTED_TIMEOUT


def test_configure_logging_sets_root_level() -> None:
    configure_logging(level="DEBUG", json_logs=True)
    root = logging.getLogger()

    assert root.level == logging.DEBUG
    assert root.handlers
    configure_logging(level="INFO")
