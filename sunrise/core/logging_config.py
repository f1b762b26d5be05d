"""Shared logging configuration for the sunrise service and scripts."""

from __future__ import annotations

import logging
import os
from typing import Optional

from pythonjsonlogger import jsonlogger

_CONFIGURED = False

# Chatty third-party loggers held at WARNING unless LOG_LEVEL=DEBUG
_NOISY_LOGGERS = ("httpx", "httpcore", "astropy", "PIL")

JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(service)s"
TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(service)s] %(name)s: %(message)s"


class _ServiceNameFilter(logging.Filter):
    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        record.service = self.service_name
        return True


def setup_logging(
    service_name: Optional[str] = None,
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> None:
    """Configure root logging once per process.

    JSON lines by default; LOG_FORMAT=text switches to a human-readable
    layout for interactive runs such as ``sunrise --dry-run``.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    service = service_name or os.getenv("SERVICE_NAME", "sunrise")
    if json_format is None:
        json_format = os.getenv("LOG_FORMAT", "json").lower() != "text"

    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(jsonlogger.JsonFormatter(JSON_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    handler.addFilter(_ServiceNameFilter(service))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)
    if log_level != "DEBUG":
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
    logging.captureWarnings(True)
    _CONFIGURED = True


__all__ = ["setup_logging"]
