# src/vsched/logging.py
from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,  # uvicorn accepts "trace"; stdlib has no such level.
}

_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s] - %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def configure_logging(log_level: str = "info", *, stream: Optional[TextIO] = None) -> None:
    """
    Configures root logging for the service.

    - logs to stdout unless another stream is given
    - thread name in every line, since releases run on threadpool workers
    - safe to call repeatedly (app reloads, tests)
    """
    level = parse_level(log_level)

    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        if isinstance(h, logging.StreamHandler):
            root.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(max(level, logging.INFO))
    logging.getLogger("uvicorn.error").setLevel(level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name if name else "vsched")


def parse_level(log_level: str) -> int:
    return _LEVELS.get(log_level.lower().strip(), logging.INFO)
