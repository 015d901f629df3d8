# src/lambda_logger/logging.py

from aws_lambda_powertools import Logger

# ==============================================================================
# Library Diagnostics Logger
# ==============================================================================
#
# Purpose:
#   A single, pre-configured AWS Lambda Powertools Logger for lambda_logger's
#   own operational messages: configuration loading, global error handler
#   installation, and the like. Application log lines never go through it;
#   they are written by LambdaLogger instances.
#
# How it Works:
#   1. The Logger is created once at module level with a fixed service name.
#   2. Its level follows the usual Powertools environment variables
#      (POWERTOOLS_LOG_LEVEL, then LOG_LEVEL), so the diagnostics stay quiet
#      unless a function opts in with DEBUG.
#
# Usage in other modules:
#   from lambda_logger.logging import logger
#
#   logger.debug("Installed global error handlers.")
#
# ==============================================================================

logger = Logger(service="lambda-logger")
