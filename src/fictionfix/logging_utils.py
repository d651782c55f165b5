"""Structured trace logging for rewrite decisions."""
from __future__ import annotations

import logging
from typing import Any, Dict

import orjson

ROOT_LOGGER = "fictionfix"
TRACE_LOGGER = "fictionfix.trace"


def configure_logger(debug: bool = False) -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER)
    if debug:
        logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(name)s] %(message)s"))
    logger.addHandler(handler)
    if not debug:
        logger.setLevel(logging.WARNING)
    return logger


def log_event(event: str, **payload: Any) -> None:
    logger = logging.getLogger(TRACE_LOGGER)
    if not logger.isEnabledFor(logging.DEBUG):
        return
    data: Dict[str, Any] = {"event": event, **payload}
    logger.debug(orjson.dumps(data, default=str).decode("utf-8"))
