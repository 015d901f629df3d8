# src/lambda_logger/wrapper.py

"""
Normalizes a logger handed in by a caller into something that always has
debug/info/warn/error.

Libraries that accept an optional logger can call `wrap(logger)` once and log
unconditionally afterwards. The wrapped object may be None, any object with
some of the four methods (a LambdaLogger, a stdlib logging.Logger, the console)
or a mapping of them, and may declare a `minimum_log_level` that is honoured
on every call.
"""

from typing import Any, Callable, Mapping, NamedTuple

from lambda_logger import system
from lambda_logger.exceptions import IllegalLogLevelError
from lambda_logger.severity import LOG_LEVELS, SEVERITIES

LogFn = Callable[..., Any]

# stdlib loggers spell it "warning"
_ALIASES = {"warn": ("warn", "warning")}


class WrappedLogger(NamedTuple):
    debug: LogFn
    info: LogFn
    warn: LogFn
    error: LogFn


def _noop(*args: Any, **kwargs: Any) -> None:
    return None


def _member(base: Any, name: str) -> Any:
    if isinstance(base, Mapping):
        return base.get(name)
    return getattr(base, name, None)


def _minimum_log_level(base: Any) -> Any:
    return _member(base, "minimum_log_level")


def _wrap_log_fn(base: Any, severity: str) -> LogFn:
    func = None
    for name in _ALIASES.get(severity, (severity,)):
        candidate = _member(base, name)
        if callable(candidate):
            func = candidate
            break

    if func is None:
        if _minimum_log_level(base) is not None:
            console = system.console
            func = getattr(console, severity, None) or console.log
        else:
            func = _noop

    rank = LOG_LEVELS.index(severity.upper())

    def log(*args: Any, **kwargs: Any) -> Any:
        # Read on every call; callers may change the level after wrapping.
        level = _minimum_log_level(base)
        if level in LOG_LEVELS and LOG_LEVELS.index(level) > rank:
            return None
        return func(*args, **kwargs)

    return log


def wrap(base_logger: Any = None) -> WrappedLogger:
    """
    Wraps `base_logger` into a WrappedLogger.

    Args:
        base_logger: The logger to wrap, or None.

    Returns:
        WrappedLogger: Four callables. A level the base logger does not provide
        falls back to the console when the base declares a
        `minimum_log_level`, and to a no-op otherwise.

    Raises:
        IllegalLogLevelError: If the declared `minimum_log_level` is not one
            of DEBUG, INFO, WARN, ERROR or SILENT.
    """
    base = base_logger if base_logger is not None else {}
    level = _minimum_log_level(base)
    if level is not None and level not in LOG_LEVELS:
        raise IllegalLogLevelError(
            f'"minimum_log_level" must be one of: {", ".join(LOG_LEVELS)} or None'
        )
    return WrappedLogger(*(_wrap_log_fn(base, severity) for severity in SEVERITIES))
