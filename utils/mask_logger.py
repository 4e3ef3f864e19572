"""
Leveled logger used by the masking engine.

The engine only calls `MaskLogger`; where messages end up is decided by the
sink, a callable `sink(level, message)`. The default sink forwards to the
stdlib `logging` logger named "pii_masking", so host applications configure
handlers and formatting the usual way.

Privacy note: callers must never pass raw values into messages. The engine
logs paths and category labels only.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Callable, Optional, Union
import logging
import sys


LOGGER_NAME = "pii_masking"


class LogLevel(IntEnum):
    OFF = 0
    FATAL = 100
    ERROR = 200
    WARN = 300
    INFO = 400
    DEBUG = 500
    TRACE = 600
    ALL = sys.maxsize


LogSink = Callable[[LogLevel, str], None]

# Below DEBUG so trace output stays hidden unless explicitly enabled.
TRACE = 5

_STDLIB_LEVELS = {
    LogLevel.FATAL: logging.CRITICAL,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.TRACE: TRACE,
}


def default_sink(level: LogLevel, message: str) -> None:
    logging.getLogger(LOGGER_NAME).log(_STDLIB_LEVELS.get(level, logging.DEBUG), message)


def coerce_log_level(value: Union[LogLevel, int, str]) -> LogLevel:
    """
    Accept a LogLevel, its numeric value, or its name ("warn", "DEBUG", ...).

    Raises ValueError for anything else.
    """
    if isinstance(value, LogLevel):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Unknown log level: {value!r}")
    if isinstance(value, int):
        return LogLevel(value)
    if isinstance(value, str):
        name = value.strip().upper()
        if name == "WARNING":
            name = "WARN"
        if name in LogLevel.__members__:
            return LogLevel[name]
    raise ValueError(f"Unknown log level: {value!r}")


class MaskLogger:
    """
    Forward an event only when its level is <= the configured level.
    """

    def __init__(self, sink: Optional[LogSink] = None, level: LogLevel = LogLevel.WARN) -> None:
        self.sink: Optional[LogSink] = default_sink if sink is None else sink
        self.level = level

    def enabled_for(self, level: LogLevel) -> bool:
        return self.sink is not None and level <= self.level

    def log(self, level: LogLevel, message: str) -> None:
        if not self.enabled_for(level):
            return
        self.sink(level, f"[{level.name.lower()}] [{LOGGER_NAME}] {message}")

    def fatal(self, message: str) -> None:
        self.log(LogLevel.FATAL, message)

    def error(self, message: str) -> None:
        self.log(LogLevel.ERROR, message)

    def warn(self, message: str) -> None:
        self.log(LogLevel.WARN, message)

    def info(self, message: str) -> None:
        self.log(LogLevel.INFO, message)

    def debug(self, message: str) -> None:
        self.log(LogLevel.DEBUG, message)

    def trace(self, message: str) -> None:
        self.log(LogLevel.TRACE, message)
