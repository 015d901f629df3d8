"""
lambda_logger
=============

Structured, redacting logs for AWS Lambda functions.

    from lambda_logger import LambdaLogger

    logger = LambdaLogger()

    @logger.handler
    async def handler(event, context):
        logger.info("received", event)

Every line carries the invocation's MDC keys (traceId, appName, ...) inside a
JSON payload bracketed by LOG_DELIMITER, and is scrubbed of bearer tokens and
any configured secrets before it is written.
"""

from lambda_logger.config import load_config, logger_options
from lambda_logger.events import BEFORE_HANDLER, EventEmitter
from lambda_logger.exceptions import (
    ConfigurationError,
    GlobalHandlerError,
    HandlerContractError,
    IllegalLogLevelError,
    IllegalSeverityError,
    LambdaLoggerError,
    ReservedKeyError,
    UnsupportedRedactorError,
)
from lambda_logger.formatting import (
    LOG_DELIMITER,
    FormatContext,
    json_formatter,
    parse_log_line,
    test_formatter,
)
from lambda_logger.logger import LambdaLogger, SubLogger, is_in_test_mode
from lambda_logger.redaction import (
    REDACTION,
    BearerRedactor,
    regex_redactor,
    string_redactor,
)
from lambda_logger.severity import LOG_LEVELS, SEVERITIES
from lambda_logger.wrapper import WrappedLogger, wrap

__all__ = [
    "BEFORE_HANDLER",
    "LOG_DELIMITER",
    "LOG_LEVELS",
    "REDACTION",
    "SEVERITIES",
    "BearerRedactor",
    "ConfigurationError",
    "EventEmitter",
    "FormatContext",
    "GlobalHandlerError",
    "HandlerContractError",
    "IllegalLogLevelError",
    "IllegalSeverityError",
    "LambdaLogger",
    "LambdaLoggerError",
    "ReservedKeyError",
    "SubLogger",
    "UnsupportedRedactorError",
    "WrappedLogger",
    "is_in_test_mode",
    "json_formatter",
    "load_config",
    "logger_options",
    "parse_log_line",
    "regex_redactor",
    "string_redactor",
    "test_formatter",
    "wrap",
]
