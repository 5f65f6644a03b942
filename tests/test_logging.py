# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""Unit tests for structured logging"""

import json
import logging

from intern_mcp.core.logging import JSONFormatter, TextFormatter, configure_logging, get_logger, log_event


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("intern_mcp.test", logging.INFO, __file__, 1, "session_created", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    output = json.loads(JSONFormatter().format(_record(session_id="abc")))

    assert output["level"] == "INFO"
    assert output["logger"] == "intern_mcp.test"
    assert output["message"] == "session_created"
    assert output["session_id"] == "abc"
    assert output["timestamp"].endswith("Z")


def test_text_formatter():
    line = TextFormatter().format(_record())
    assert " - intern_mcp.test - INFO - session_created" in line


def test_get_logger_replaces_handlers():
    logger = get_logger("intern_mcp.test_handlers", log_level="debug", log_format="text")
    logger = get_logger("intern_mcp.test_handlers", log_level="debug", log_format="json")

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, JSONFormatter)


def test_configure_logging_targets_package_logger():
    logger = configure_logging("WARNING", "text")
    try:
        assert logger.name == "intern_mcp"
        assert logger.level == logging.WARNING
    finally:
        logger.handlers = []
        logger.setLevel(logging.NOTSET)


def test_log_event_passes_fields(caplog):
    logger = logging.getLogger("intern_mcp.test_events")

    with caplog.at_level(logging.INFO, logger="intern_mcp.test_events"):
        log_event(logger, "request_rejected", http_method="POST", session_id=None)

    record = caplog.records[0]
    assert record.getMessage() == "request_rejected"
    assert record.http_method == "POST"


def test_text_formatter_appends_fields():
    line = TextFormatter().format(_record(session_id="abc", http_method="POST"))
    assert line.endswith("session_created session_id=abc http_method=POST")
