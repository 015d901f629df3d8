# src/lambda_logger/exceptions.py

"""
Errors raised by lambda_logger.

Every error here is a usage or configuration problem raised synchronously at the
call site. Failures inside a wrapped handler are never converted into one of
these; they propagate unchanged.
"""


class LambdaLoggerError(Exception):
    """Base class for all lambda_logger errors."""


class IllegalSeverityError(LambdaLoggerError, ValueError):
    """A log call used a severity outside debug/info/warn/error."""


class IllegalLogLevelError(LambdaLoggerError, ValueError):
    """A minimum log level outside DEBUG/INFO/WARN/ERROR/SILENT."""


class ReservedKeyError(LambdaLoggerError, ValueError):
    """An MDC key collides with a field the formatter owns."""


class UnsupportedRedactorError(LambdaLoggerError, TypeError):
    """A redactor is neither a string, a compiled pattern nor a callable."""


class HandlerContractError(LambdaLoggerError, TypeError):
    """A wrapped handler returned something that cannot be awaited."""


class GlobalHandlerError(LambdaLoggerError, RuntimeError):
    """The process-wide error handlers cannot be installed."""


class ConfigurationError(LambdaLoggerError, ValueError):
    """The logging section of the configuration file is invalid."""
