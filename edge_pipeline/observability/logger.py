"""
Structured logger module.

A single process-wide handle emits the pipeline's structured events. Outside
production the output is colorized and human readable; in production every
event is one JSON object per line so log collectors can ingest it without a
pretty-printing transport.

    logger = configure_logger(production=False)
    logger.info({"type": "server", "port": 3000}, "Server is running")
"""
import logging
import os
import socket
import sys
from typing import Any, IO, List, Mapping, Optional

import structlog

_fallback = logging.getLogger(__name__)

_logger: Optional["StructuredLogger"] = None


def _level_value(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


class StructuredLogger:
    """Leveled logger accepting a structured payload plus a human message"""

    def __init__(
        self,
        production: bool = False,
        level: Optional[str] = None,
        stream: Optional[IO[str]] = None
    ):
        self.production = production
        self.level = (level or ("info" if production else "debug")).lower()
        self._stream = stream if stream is not None else sys.stdout
        self._logger = structlog.wrap_logger(
            structlog.PrintLogger(file=self._stream),
            processors=self._processors(),
            wrapper_class=structlog.make_filtering_bound_logger(_level_value(self.level)),
            context_class=dict,
            cache_logger_on_first_use=False,
        )
        if production:
            self._logger = self._logger.bind(pid=os.getpid(), hostname=socket.gethostname())

    def _processors(self) -> List[Any]:
        if self.production:
            return [
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso", utc=True, key="time"),
                structlog.processors.format_exc_info,
                structlog.processors.EventRenamer("msg"),
                structlog.processors.JSONRenderer(),
            ]
        return [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    def _emit(self, method: str, payload: Optional[Mapping[str, Any]], message: str) -> None:
        try:
            getattr(self._logger, method)(message, **dict(payload or {}))
        except Exception:
            _fallback.exception("Failed to emit %s log event: %s", method, message)

    def debug(self, payload: Optional[Mapping[str, Any]], message: str) -> None:
        self._emit("debug", payload, message)

    def info(self, payload: Optional[Mapping[str, Any]], message: str) -> None:
        self._emit("info", payload, message)

    def warn(self, payload: Optional[Mapping[str, Any]], message: str) -> None:
        self._emit("warning", payload, message)

    warning = warn

    def error(self, payload: Optional[Mapping[str, Any]], message: str) -> None:
        self._emit("error", payload, message)

    def is_enabled_for(self, level: str) -> bool:
        return _level_value(level) >= _level_value(self.level)

    def flush(self) -> None:
        try:
            self._stream.flush()
        except (OSError, ValueError):
            _fallback.warning("Log stream could not be flushed")


def configure_logger(
    production: bool,
    level: Optional[str] = None,
    stream: Optional[IO[str]] = None
) -> StructuredLogger:
    """Initialize the process-wide logger once and return it"""
    global _logger
    if _logger is None:
        _logger = StructuredLogger(production=production, level=level, stream=stream)
    return _logger


def get_logger() -> StructuredLogger:
    """Return the process-wide logger, configuring development defaults if needed"""
    if _logger is None:
        return configure_logger(production=False)
    return _logger


def reset_logger() -> None:
    """Forget the process-wide logger so the next configure call takes effect"""
    global _logger
    _logger = None
