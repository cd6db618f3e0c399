#!/usr/bin/env -S python3 -B -u
"""
Structured Logging for the Home Network Planner

Thin layer over the standard logging module that filters by the shell's
verbosity level (-v, -vv, -vvv) and appends key=value context to the
message.

Key Features:
- One stderr handler per named logger, format chosen by verbosity
- Context rendered as key=value, or as JSON at trace level
- Masking of credential-like context keys (Wi-Fi passwords and the like)
- Timing of editor transactions
"""

import logging as std_logging
import sys
import time
import json
from typing import Any, Dict, Tuple
from contextlib import contextmanager


# Minimum verbosity at which each level is emitted
_MIN_VERBOSITY = {
    std_logging.ERROR: 0,
    std_logging.WARNING: 1,
    std_logging.INFO: 1,
    std_logging.DEBUG: 2,
}

_FORMATS = (
    (3, '%(asctime)s [%(name)s] %(levelname)s: %(message)s'),
    (2, '[%(name)s] %(levelname)s: %(message)s'),
    (0, '%(message)s'),
)

_MASKED_KEYS = ('password', 'passphrase', 'secret', 'token', 'auth')

_loggers: Dict[Tuple[str, int], "StructuredLogger"] = {}


class StructuredLogger:
    """
    Logger with verbosity control.

    Verbosity levels:
    - 0: errors only
    - 1: warnings and info
    - 2: debug, with context on every message
    - 3: trace, timestamps and JSON context
    """

    def __init__(self, name: str, verbose_level: int = 0):
        self.name = name
        self.verbose_level = verbose_level
        self.logger = std_logging.getLogger(name)
        self.logger.setLevel(std_logging.DEBUG)
        self.logger.propagate = False
        self.logger.handlers.clear()

        handler = std_logging.StreamHandler(sys.stderr)
        fmt = next(f for level, f in _FORMATS if verbose_level >= level)
        handler.setFormatter(std_logging.Formatter(fmt, datefmt='%Y-%m-%d %H:%M:%S'))
        self.logger.addHandler(handler)

    def _emit(self, level: int, message: str, context: Dict[str, Any],
              with_context: bool) -> None:
        if self.verbose_level < _MIN_VERBOSITY.get(level, 3):
            return
        if context and with_context:
            message = f"{message} | {self._format_context(context)}"
        self.logger.log(level, message)

    def error(self, message: str, **context: Any) -> None:
        self._emit(std_logging.ERROR, message, context, self.verbose_level >= 2)

    def warning(self, message: str, **context: Any) -> None:
        self._emit(std_logging.WARNING, message, context, self.verbose_level >= 2)

    def info(self, message: str, **context: Any) -> None:
        self._emit(std_logging.INFO, message, context, self.verbose_level >= 2)

    def debug(self, message: str, **context: Any) -> None:
        self._emit(std_logging.DEBUG, message, context, True)

    def trace(self, message: str, **context: Any) -> None:
        """Emit only at -vvv."""
        if self.verbose_level >= 3:
            self._emit(std_logging.DEBUG, f"[TRACE] {message}", context, True)

    def _format_context(self, context: Dict[str, Any]) -> str:
        context = _masked(context)
        if self.verbose_level >= 3:
            return json.dumps(context, default=str, ensure_ascii=False)
        return " ".join(f"{key}={value}" for key, value in context.items())

    @contextmanager
    def timer(self, operation: str):
        """Trace how long a block takes."""
        started = time.perf_counter()
        self.trace(f"Starting {operation}")
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self.trace(f"Completed {operation}", elapsed_ms=f"{elapsed_ms:.2f}")

    def log_mutation(self, operation: str, **details: Any) -> None:
        """Log a committed editor transaction."""
        self.debug(f"Mutation: {operation}", **details)

    def log_propagation(self, resolved: int, unresolved: int, **details: Any) -> None:
        """Log the outcome of a subnet recompute pass."""
        self.trace("Subnet propagation", resolved=resolved, unresolved=unresolved, **details)


def _masked(data: Dict[str, Any]) -> Dict[str, Any]:
    result = {}
    for key, value in data.items():
        if any(word in key.lower() for word in _MASKED_KEYS):
            result[key] = "***MASKED***"
        elif isinstance(value, dict):
            result[key] = _masked(value)
        else:
            result[key] = value
    return result


def get_logger(name: str, verbose_level: int = None) -> StructuredLogger:
    """
    Get a cached structured logger.

    Args:
        name: Logger name (usually __name__)
        verbose_level: Verbosity level (0-3), global level if omitted
    """
    if verbose_level is None:
        verbose_level = get_verbose_level()

    key = (name, verbose_level)
    if key not in _loggers:
        _loggers[key] = StructuredLogger(name, verbose_level)
    return _loggers[key]


def setup_logging(verbose_level: int = 0) -> None:
    """Set the global verbosity and quiet third-party loggers."""
    setup_logging._verbose_level = verbose_level

    std_logging.getLogger().setLevel(std_logging.WARNING)
    for noisy in ('cmd2', 'yaml'):
        std_logging.getLogger(noisy).setLevel(std_logging.ERROR)


def get_verbose_level() -> int:
    """Get the global verbose level."""
    return getattr(setup_logging, '_verbose_level', 0)
