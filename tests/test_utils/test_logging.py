"""Tests for logging configuration."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from clinic_forecaster.config import LoggingConfig
from clinic_forecaster.utils.logging import ENGINE_LOGGER, _JsonFormatter, configure_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    engine = logging.getLogger(ENGINE_LOGGER)
    handlers, level, engine_level = root.handlers[:], root.level, engine.level
    yield
    engine.setLevel(engine_level)
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_formatter_fields_and_extra() -> None:
    record = logging.LogRecord("clinic_forecaster.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    record.series = "revenue"
    payload = json.loads(_JsonFormatter().format(record))
    assert payload["level"] == "INFO"
    assert payload["logger"] == "clinic_forecaster.test"
    assert payload["msg"] == "hello world"
    assert payload["series"] == "revenue"
    assert payload["ts"].endswith("Z")


def test_configure_sets_level() -> None:
    configure_logging(LoggingConfig(level="DEBUG"))
    assert logging.getLogger().level == logging.DEBUG


def test_file_handler_writes_json(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "engine.log"
    configure_logging(LoggingConfig(level="INFO", log_file=str(log_file), json_format=True))
    logging.getLogger("clinic_forecaster.test").info("forecast done")
    for handler in logging.getLogger().handlers:
        handler.flush()
    line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
    assert json.loads(line)["msg"] == "forecast done"


def test_debug_flag_overrides_level() -> None:
    configure_logging(LoggingConfig(level="WARNING"), debug=True)
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger(ENGINE_LOGGER).isEnabledFor(logging.DEBUG)
