# src/lambda_logger/schema.py

from typing import Any, Dict

from jsonschema import ValidationError, validate

from lambda_logger.exceptions import ConfigurationError
from lambda_logger.logging import logger
from lambda_logger.severity import LOG_LEVELS

# The `logging` section of a configuration file. Every option is optional and
# maps onto a LambdaLogger constructor argument.
LOGGING_CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "minimum_log_level": {"enum": list(LOG_LEVELS)},
        "formatter": {"enum": ["json", "test"]},
        "use_bearer_redactor": {"type": "boolean"},
        "use_global_error_handler": {"type": "boolean"},
        "force_global_error_handler": {"type": "boolean"},
        "test_mode": {"type": "boolean"},
        "redactors": {
            "type": "array",
            "items": {
                "oneOf": [
                    {"type": "string", "minLength": 1},
                    {
                        "type": "object",
                        "properties": {"regex": {"type": "string", "minLength": 1}},
                        "required": ["regex"],
                        "additionalProperties": False,
                    },
                ]
            },
        },
    },
    "additionalProperties": False,
}


def validate_logging_config(data: Dict[str, Any]) -> None:
    """
    Validates the `logging` section of a configuration file.

    Purpose:
        To reject misspelled options and illegal values when the logger is
        built, instead of letting them be silently ignored until a log line
        goes missing in production.

    Args:
        data (Dict[str, Any]): The `logging` section, as loaded from YAML.

    Raises:
        ConfigurationError: If the section does not match LOGGING_CONFIG_SCHEMA.
    """
    try:
        validate(instance=data, schema=LOGGING_CONFIG_SCHEMA)
    except ValidationError as e:
        logger.warning(
            "Logging configuration failed validation.",
            extra={
                "error_message": e.message,
                "validator": e.validator,
                "path": list(e.path),
            },
        )
        raise ConfigurationError(
            f"Invalid logging configuration at {list(e.path)}: {e.message}"
        ) from e
    logger.debug("Logging configuration validation successful.")
