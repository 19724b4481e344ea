"""Centralized logging configuration for the application."""
from __future__ import annotations

import logging
import logging.handlers
import os
import time

from ledgerscan.core.config import settings

SCAN_LOGGER = "ledgerscan.scan"
_MAX_BYTES = 10 * 1024 * 1024


def _rotating_handler(path: str, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=_MAX_BYTES,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_dir: str | None = None) -> None:
    """Configure application, scan and uvicorn loggers.

    Everything goes to ``app.log`` and stderr. Per-scan outcome lines are also
    written to ``scan.log`` so ingestion history can be read on its own.
    Calling this twice replaces the handlers instead of stacking them.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    log_dir = log_dir or settings.LOG_DIR

    os.makedirs(log_dir, exist_ok=True)
    formatter = logging.Formatter(
        "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    logging.Formatter.converter = time.gmtime

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [
        _rotating_handler(os.path.join(log_dir, "app.log"), formatter),
        stream_handler,
    ]

    scan_logger = logging.getLogger(SCAN_LOGGER)
    scan_logger.setLevel(min(log_level, logging.INFO))
    scan_logger.handlers = [_rotating_handler(os.path.join(log_dir, "scan.log"), formatter)]
    scan_logger.propagate = True

    # SQL echo is controlled by DEBUG on the engine itself.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.DEBUG else logging.WARNING)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(log_level)


__all__ = ["SCAN_LOGGER", "setup_logging"]
