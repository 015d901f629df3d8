# src/lambda_logger/formatting.py

"""
Formatters turn the logger's keys, the severity and the log arguments into the
single line written to the console.

Two formatters ship with the library:

    json_formatter  -- human readable prefix followed by the structured payload
                       bracketed by LOG_DELIMITER, for CloudWatch and friends
    test_formatter  -- severity, path and message only, for readable test output

Structured line layout:

     db query took 12ms |
     ___$LAMBDA-LOG-TAG$___{"traceId": "...", "message": "query took 12ms", ...}___$LAMBDA-LOG-TAG$___
"""

import dataclasses
import json
import traceback
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Set, Tuple, Union

Loggable = Union[str, bool, int, float, None]

# Shared by every logger so downstream processors can strip the payload from
# the human readable prefix.
LOG_DELIMITER = "___$LAMBDA-LOG-TAG$___"
CIRCULAR = "[Circular]"


@dataclass(frozen=True)
class FormatContext:
    keys: Dict[str, Loggable] = field(default_factory=dict)
    context_path: Tuple[str, ...] = ()


Formatter = Callable[..., str]


def format_stack(error: Any) -> str:
    """Renders an exception the way the interpreter prints it."""
    if isinstance(error, BaseException):
        return "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        ).rstrip("\n")
    return str(getattr(error, "stack", error))


def _decycle(value: Any, ancestors: Set[int]) -> Any:
    if isinstance(value, BaseException):
        return format_stack(value)

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        if id(value) in ancestors:
            return CIRCULAR
        ancestors.add(id(value))
        result = {
            f.name: _decycle(getattr(value, f.name), ancestors)
            for f in dataclasses.fields(value)
        }
        ancestors.discard(id(value))
        return result

    if isinstance(value, Mapping):
        if id(value) in ancestors:
            return CIRCULAR
        ancestors.add(id(value))
        result = {str(k): _decycle(v, ancestors) for k, v in value.items()}
        ancestors.discard(id(value))
        return result

    if isinstance(value, (list, tuple, set, frozenset)):
        if id(value) in ancestors:
            return CIRCULAR
        ancestors.add(id(value))
        result = [_decycle(v, ancestors) for v in value]
        ancestors.discard(id(value))
        return result

    return value


def safe_stringify(value: Any, indent: Optional[int] = None) -> str:
    """
    Serializes `value` to JSON without ever failing.

    References back to a container already being serialized are replaced with
    "[Circular]". Values JSON cannot represent fall back to `str()`.
    """
    return json.dumps(
        _decycle(value, set()), indent=indent, default=str, ensure_ascii=False
    )


def format_message_item(item: Any) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, BaseException):
        return format_stack(item)
    return safe_stringify(item, indent=2)


def format_message(*args: Any) -> str:
    return " ".join(format_message_item(arg) for arg in args)


def get_log_path(context_path: Tuple[str, ...]) -> str:
    return ".".join(context_path)


def _prefix(context_path: Tuple[str, ...]) -> str:
    path = get_log_path(context_path)
    return f" {path} " if path else " "


def with_delimiter(payload: str) -> str:
    return f"{LOG_DELIMITER}{payload}{LOG_DELIMITER}"


def json_formatter(context: FormatContext, severity: str, *args: Any) -> str:
    log: Dict[str, Any] = {k: v for k, v in context.keys.items() if v is not None}
    log["message"] = format_message(*args)
    log["severity"] = severity.upper()
    path = get_log_path(context.context_path)
    if path:
        log["contextPath"] = path
    # The plain message goes first so the console view stays readable; the
    # annotated payload follows between delimiters for parsing.
    return (
        f"{_prefix(context.context_path)}{log['message']} |\n "
        f"{with_delimiter(safe_stringify(log))}"
    )


def test_formatter(context: FormatContext, severity: str, *args: Any) -> str:
    return f"{severity.upper()}{_prefix(context.context_path)}{format_message(*args)}"


# Not a test case.
test_formatter.__test__ = False  # type: ignore[attr-defined]


def parse_log_line(line: str) -> Optional[Dict[str, Any]]:
    """
    Extracts the structured payload from a line written by `json_formatter`.

    Args:
        line (str): A complete log line.

    Returns:
        Optional[Dict[str, Any]]: The decoded payload, or None if the line does
        not carry one.
    """
    start = line.find(LOG_DELIMITER)
    if start == -1:
        return None
    start += len(LOG_DELIMITER)
    end = line.rfind(LOG_DELIMITER)
    if end < start:
        return None
    return json.loads(line[start:end])
