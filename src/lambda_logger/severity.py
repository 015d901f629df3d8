# src/lambda_logger/severity.py

from typing import Literal, Optional, Tuple

from lambda_logger.exceptions import IllegalLogLevelError, IllegalSeverityError

Severity = Literal["debug", "info", "warn", "error"]
LogLevel = Literal["DEBUG", "INFO", "WARN", "ERROR", "SILENT"]

# Ordered from least to most important. SILENT outranks every severity, so a
# SILENT threshold suppresses all output.
SEVERITIES: Tuple[str, ...] = ("debug", "info", "warn", "error")
LOG_LEVELS: Tuple[str, ...] = tuple(s.upper() for s in SEVERITIES) + ("SILENT",)


def validate_severity(severity: str) -> str:
    if severity not in SEVERITIES:
        raise IllegalSeverityError(f"Unable to log, illegal severity: {severity}")
    return severity


def validate_log_level(level: str) -> str:
    if level not in LOG_LEVELS:
        raise IllegalLogLevelError(f"Illegal log level value: {level}")
    return level


def is_suppressed(severity: str, minimum_log_level: Optional[str]) -> bool:
    """
    Tells whether a log call at `severity` falls below `minimum_log_level`.

    An unset threshold suppresses nothing. Both arguments are expected to be
    valid; callers validate them first.
    """
    if not minimum_log_level:
        return False
    return LOG_LEVELS.index(severity.upper()) < LOG_LEVELS.index(minimum_log_level)
