"""Tests for JSON log formatting and handler management."""

import json
import logging

import pytest

from ContentRouter.logging_utils import JSONFormatter, setup_logging


@pytest.fixture
def router_logger():
    logger = logging.getLogger("ContentRouter")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    for handler in list(logger.handlers):
        if handler not in saved[0]:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def _record(**extra):
    record = logging.LogRecord("ContentRouter.engine", logging.INFO, __file__, 1, "hello %s", ("x",), None)
    record.__dict__.update(extra)
    return record


def test_formatter_emits_json_with_extras():
    payload = json.loads(JSONFormatter().format(_record(status=200)))
    assert payload["message"] == "hello x"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "ContentRouter.engine"
    assert payload["status"] == 200
    assert payload["timestamp"].endswith("Z")


def test_formatter_masks_url_fields():
    payload = json.loads(JSONFormatter().format(_record(url="https://ex.com/go?pathid=9&a=1")))
    assert payload["url"] == "https://ex.com/go?pathid=***&a=1"


def test_setup_does_not_stack_handlers(router_logger):
    setup_logging(level="DEBUG")
    setup_logging(level="WARNING")
    managed = [h for h in router_logger.handlers if getattr(h, "_contentrouter_managed", False)]
    assert len(managed) == 1
    assert router_logger.level == logging.WARNING
    assert router_logger.propagate is False


def test_file_handler_writes_jsonl(router_logger, tmp_path):
    setup_logging(level="INFO", log_dir=tmp_path)
    logging.getLogger("ContentRouter.engine").info("Basic display activated", extra={"url": "https://ex.com/?push_id=u1"})
    for handler in router_logger.handlers:
        handler.flush()

    (log_file,) = tmp_path.glob("contentrouter-*.jsonl")
    line = json.loads(log_file.read_text().splitlines()[-1])
    assert line["message"] == "Basic display activated"
    assert line["url"] == "https://ex.com/?push_id=***"
