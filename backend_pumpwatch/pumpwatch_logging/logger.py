"""
structlog configuration for pumpwatch.

One JSON object per line (LOG_FORMAT=console for a dev renderer), filtered at
LOG_LEVEL. structlog's `event` is emitted as `event_type` next to keyword
context such as mint, verdict or client.

Lines go to stdout by default. LOG_STREAM=stderr, or log_to_stderr() from a
CLI entry point, moves them to stderr so that stdout carries only the
command's own output. The stream is looked up on every write, so switching
also applies to loggers that were bound at import time.

No backend_pumpwatch imports here; everything else imports this module.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

STREAM_NAMES = ("stdout", "stderr")


class LogStream:
    """Write target for structlog's PrintLogger that follows sys.stdout / sys.stderr."""

    def __init__(self, name: str = "stdout") -> None:
        self.name = name if name in STREAM_NAMES else "stdout"

    @property
    def target(self) -> Any:
        return getattr(sys, self.name)

    def write(self, message: str) -> int:
        return self.target.write(message)

    def flush(self) -> None:
        self.target.flush()

    def isatty(self) -> bool:
        return self.target.isatty()


LOG_STREAM = LogStream(os.getenv("LOG_STREAM", "stdout").strip().lower())


def _add_timestamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _event_type(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def configure_structlog() -> None:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _event_type,
    ]
    if LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=LOG_STREAM.isatty()))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL_VALUE),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=LOG_STREAM),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Structured logger for a module.

        logger = get_logger(__name__)
        logger.info("launch_stored", key=key, trimmed=0)
    """
    return structlog.get_logger(name).bind(logger=name)


def log_to_stderr() -> None:
    """Send all log lines to stderr from now on (CLI tools print JSON on stdout)."""
    LOG_STREAM.name = "stderr"
