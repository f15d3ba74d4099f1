"""
Structured logging configuration.

Provides JSON-formatted logs with a run_id for correlating the records of one
render or ingest run.

Environment Variables:
    PLACELAPSE_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR) - default: INFO
    PLACELAPSE_LOG_FORMAT: Log format (json, text) - default: json

Usage:
    from placelapse.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__, run_id="render-1")
    logger.info("Render started", extra={"frames": 120})
"""

import logging
import os
import sys
from typing import Optional

from pythonjsonlogger.json import JsonFormatter


def setup_logging(stream=None) -> None:
    """
    Configure root logger with structured logging.

    Logs go to stderr by default so the CLI's own output on stdout stays
    machine-readable.
    """
    log_level = os.getenv("PLACELAPSE_LOG_LEVEL", "INFO").upper()
    log_format = os.getenv("PLACELAPSE_LOG_FORMAT", "json").lower()

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    level = level_map.get(log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.addFilter(RunIDFilter())

    if log_format == "json":
        formatter = JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s %(run_id)s",
            rename_fields={
                "asctime": "timestamp",
                "name": "logger",
                "levelname": "level",
            },
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s [run_id=%(run_id)s]",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def get_logger(name: str, run_id: Optional[str] = None) -> logging.LoggerAdapter:
    """
    Get a logger with optional run_id for correlation.

    Example:
        logger = get_logger(__name__, run_id="render-1")
        logger.info("Frame emitted")
        # Output (JSON): {"timestamp": "...", "level": "INFO", "message": "Frame emitted", "run_id": "render-1"}
    """
    logger = logging.getLogger(name)
    return RunLoggerAdapter(logger, {"run_id": run_id or "N/A"})


class RunLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that keeps per-call extra fields next to run_id."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


class RunIDFilter(logging.Filter):
    """Ensures every record has a run_id, even if not logged through an adapter."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "run_id"):
            record.run_id = "N/A"  # type: ignore
        return True
