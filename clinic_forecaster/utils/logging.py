"""
Logging setup for CLI runs of the clinic forecaster.

The engine itself only calls ``logging.getLogger(__name__)``; host
applications that embed it keep their own handlers.  The CLI calls
``configure_logging`` once per command, before reading any input.

Console output is written to stderr because every command prints its JSON
result on stdout.  ``json_format = true`` switches both the console and the
optional log file to one JSON object per record::

    {"ts": "2026-10-18T09:00:00Z", "level": "DEBUG",
     "logger": "clinic_forecaster.backtest.evaluator", "msg": "..."}

Keys passed through ``extra=`` are copied into the object.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clinic_forecaster.config import LoggingConfig

ENGINE_LOGGER = "clinic_forecaster"
TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class _JsonFormatter(logging.Formatter):
    """One JSON object per record: ``ts``, ``level``, ``logger``, ``msg``, extras."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict = {
            "ts": created.strftime(TIMESTAMP_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (key, val)
            for key, val in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _attach(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(config: "LoggingConfig", debug: bool = False) -> None:
    """Install root handlers for a CLI run.

    Args:
        config: ``[logging]`` section of ``AppConfig``.
        debug:  ``AppConfig.debug``; forces DEBUG for the engine's loggers
                (forest builds, fallbacks, backtest splits) whatever
                ``config.level`` says.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    if debug:
        level = logging.DEBUG

    formatter = (
        _JsonFormatter()
        if config.json_format
        else logging.Formatter(TEXT_FORMAT, datefmt=TIMESTAMP_FORMAT)
    )

    handlers = [_attach(logging.StreamHandler(sys.stderr), level, formatter)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _attach(logging.FileHandler(log_path, encoding="utf-8"), level, formatter)
        )

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.getLogger(ENGINE_LOGGER).setLevel(level)
