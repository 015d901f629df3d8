# src/lambda_logger/config.py

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from lambda_logger.exceptions import ConfigurationError
from lambda_logger.formatting import json_formatter, test_formatter
from lambda_logger.logging import logger
from lambda_logger.schema import validate_logging_config
from lambda_logger.severity import validate_log_level

CONFIG_PATH_ENV = "LAMBDA_LOGGER_CONFIG"
LEVEL_OVERRIDE_ENV = "MINIMUM_LOG_LEVEL"

FORMATTERS = {
    "json": json_formatter,
    "test": test_formatter,
}

_config_cache: Dict[Path, Dict[str, Any]] = {}


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """
    Works out which configuration file to load.

    An explicit `path` wins, then the LAMBDA_LOGGER_CONFIG environment variable,
    then `config/<APP_ENV>.yaml` relative to the working directory (the
    function's deployment root on Lambda).

    Raises:
        ValueError: If neither LAMBDA_LOGGER_CONFIG nor APP_ENV is set.
    """
    if path:
        return Path(path)

    explicit = os.environ.get(CONFIG_PATH_ENV)
    if explicit:
        return Path(explicit)

    # Determine the environment (dev, staging, prod)
    env = os.environ.get("APP_ENV")
    if not env:
        raise ValueError(
            f"Neither {CONFIG_PATH_ENV} nor APP_ENV environment variable is set."
        )
    return Path.cwd() / "config" / f"{env}.yaml"


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Loads the application configuration from a YAML file.

    Purpose:
        To let a function configure its logger per environment (e.g. DEBUG in
        dev, WARN in prod, extra redactors where secrets are handled) without
        code changes. The loaded configuration is cached per path to avoid
        repeated file I/O in the same Lambda execution context.

    Args:
        path (Optional[Union[str, Path]]): Explicit file to load. See
            `resolve_config_path` for the fallbacks.

    Returns:
        Dict[str, Any]: The parsed configuration. An empty file yields {}.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        ValueError: If no configuration file can be determined.
    """
    config_path = resolve_config_path(path)
    if config_path in _config_cache:
        logger.debug("Returning cached configuration.", extra={"path": str(config_path)})
        return _config_cache[config_path]

    logger.info(f"Loading configuration from: {config_path}")

    if not config_path.is_file():
        logger.error(f"Configuration file not found at path: {config_path}")
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        try:
            config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML file {config_path}: {e}")
            raise

    _config_cache[config_path] = config_data
    logger.info("Successfully loaded and cached configuration.")
    return config_data


def clear_config_cache() -> None:
    _config_cache.clear()


def logger_options(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Converts the `logging` section of a configuration into LambdaLogger
    keyword arguments.

    Args:
        config (Optional[Dict[str, Any]]): A loaded configuration. A missing
            `logging` section yields the logger defaults.

    Returns:
        Dict[str, Any]: Constructor keyword arguments.

    Raises:
        ConfigurationError: If the section is invalid or a redactor pattern
            does not compile.
    """
    section = (config or {}).get("logging") or {}
    validate_logging_config(section)
    options = dict(section)

    if "formatter" in options:
        options["formatter"] = FORMATTERS[options["formatter"]]

    if "redactors" in options:
        redactors = []
        for entry in options["redactors"]:
            if isinstance(entry, dict):
                try:
                    redactors.append(re.compile(entry["regex"]))
                except re.error as e:
                    raise ConfigurationError(
                        f"Invalid redactor pattern {entry['regex']!r}: {e}"
                    ) from e
            else:
                redactors.append(entry)
        options["redactors"] = redactors

    override = os.environ.get(LEVEL_OVERRIDE_ENV)
    if override:
        options["minimum_log_level"] = validate_log_level(override)

    return options
