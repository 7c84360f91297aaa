"""Logging setup for the API server and the CLI.

Everything logs under the ``carfinder`` logger tree; library loggers such as
``httpx`` and ``qdrant_client`` keep their own levels.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any

ROOT_LOGGER_NAME = "carfinder"

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(module)s:%(funcName)s | %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JSONExceptionFormatter(logging.Formatter):
    """One JSON object per record, with the traceback inlined when there is one."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": {
                "file": record.filename,
                "function": record.funcName,
                "line": record.lineno,
            },
        }
        exc_type, exc_value, _ = record.exc_info or (None, None, None)
        if exc_type is not None:
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value) if exc_value else None,
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry)


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    json_format: bool = False,
) -> logging.Logger:
    """Route ``carfinder`` records to stdout and, optionally, a file.

    Calling it again replaces the previous handlers, so the server lifespan
    and the CLI callback can both call it. Unknown level names fall back to
    INFO.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()

    formatter: logging.Formatter
    if json_format:
        formatter = JSONExceptionFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
