# src/lambda_logger/logger.py

"""
The logging context: MDC keys, severity threshold, formatter and redactors
shared by a root LambdaLogger and every sub-logger created from it.

Example:
    >>> logger = LambdaLogger(minimum_log_level="INFO")
    >>> db = logger.create_sub_logger("db")
    >>>
    >>> @logger.handler
    ... async def handler(event, context):
    ...     logger.set_key("orderId", event["orderId"])
    ...     db.info("loading order", {"id": event["orderId"]})

Output (abridged):
     db loading order {
      "id": 42
    } |
     ___$LAMBDA-LOG-TAG$___{"traceId": "c6af9ac6-...", "orderId": 42, ...}___$LAMBDA-LOG-TAG$___
"""

import asyncio
import functools
import inspect
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Tuple,
)

from aws_lambda_powertools.utilities.typing import LambdaContext

from lambda_logger import system
from lambda_logger.config import load_config, logger_options
from lambda_logger.events import BEFORE_HANDLER, EventEmitter
from lambda_logger.exceptions import HandlerContractError, ReservedKeyError
from lambda_logger.formatting import (
    FormatContext,
    Formatter,
    Loggable,
    json_formatter,
    test_formatter,
)
from lambda_logger.interceptor import interceptor, register_error_handlers
from lambda_logger.redaction import (
    BearerRedactor,
    Redactor,
    apply_redactors,
    create_redactor_chain,
)
from lambda_logger.severity import is_suppressed, validate_log_level, validate_severity

RESERVED_KEYS = ("message", "severity")

_FALSY_ENV_VALUES = ("", "0", "false", "no", "off")


class Lazy:
    """A key value computed from `fn` each time a log line is rendered."""

    __slots__ = ("fn",)

    def __init__(self, fn: Callable[[], Loggable]):
        self.fn = fn

    def resolve(self) -> Loggable:
        return self.fn()


@dataclass
class _Threshold:
    level: Optional[str] = None


@dataclass
class _LogState:
    formatter: Formatter
    redactors: List[Redactor]
    test_mode: bool
    threshold: _Threshold = field(default_factory=_Threshold)
    keys: Dict[str, Any] = field(default_factory=dict)
    events: EventEmitter = field(default_factory=EventEmitter)


def _truthy_env(name: str) -> bool:
    value = os.environ.get(name)
    return value is not None and value.strip().lower() not in _FALSY_ENV_VALUES


def is_in_test_mode(test_mode: Optional[bool] = None) -> bool:
    """
    Tells whether the process runs under a test runner or on CI.

    An explicit `test_mode` always wins.
    """
    if test_mode is not None:
        return test_mode
    if "pytest" in sys.modules or os.environ.get("PYTEST_CURRENT_TEST"):
        return True
    return any(_truthy_env(name) for name in ("TEST", "test", "CI", "ci"))


def get_formatted_date() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _field(source: Any, *names: str) -> Any:
    """Returns the first of `names` set on a mapping or object."""
    if source is None:
        return None
    for name in names:
        if isinstance(source, Mapping):
            value = source.get(name)
        else:
            value = getattr(source, name, None)
        if value is not None:
            return value
    return None


def _request_id(source: Any) -> Optional[str]:
    request_context = _field(source, "requestContext", "request_context")
    return _field(request_context, "requestId", "request_id")


class SubLogger:
    """
    Writes log lines for one context path.

    Sub-loggers share everything with the logger they were created from except
    their path, which gains one segment per `create_sub_logger` call. The
    severity threshold is read from the shared state on every call, so a change
    on the root logger applies to sub-loggers created earlier.
    """

    def __init__(self, state: _LogState, context_path: Tuple[str, ...] = ()):
        self._state = state
        self._context_path = context_path

    @property
    def context_path(self) -> Tuple[str, ...]:
        return self._context_path

    @property
    def minimum_log_level(self) -> Optional[str]:
        return self._state.threshold.level

    @property
    def test_mode(self) -> bool:
        return self._state.test_mode

    def log(self, severity: str, *args: Any) -> None:
        validate_severity(severity)
        if is_suppressed(severity, self._state.threshold.level):
            return
        line = apply_redactors(self._state.redactors, self._render(severity, *args))
        getattr(system.console, severity)(line)

    def _render(self, severity: str, *args: Any) -> str:
        keys = {
            key: value.resolve() if isinstance(value, Lazy) else value
            for key, value in self._state.keys.items()
        }
        context = FormatContext(keys=keys, context_path=self._context_path)
        return self._state.formatter(context, severity, *args)

    def debug(self, *args: Any) -> None:
        self.log("debug", *args)

    def info(self, *args: Any) -> None:
        self.log("info", *args)

    def warn(self, *args: Any) -> None:
        self.log("warn", *args)

    def error(self, *args: Any) -> None:
        self.log("error", *args)

    def create_sub_logger(self, name: str) -> "SubLogger":
        return SubLogger(self._state, self._context_path + (name,))


class LambdaLogger(SubLogger):
    """
    Root logger for a Lambda function.

    Create one per function at module level and wrap the handler with
    `handler` (async handlers) or `lambda_handler` (the runtime entry point).

    Args:
        minimum_log_level: Suppress log calls below this level. One of DEBUG,
            INFO, WARN, ERROR or SILENT. None logs everything.
        formatter: Replaces the default formatter. Defaults to
            `json_formatter`, or `test_formatter` in test mode.
        use_bearer_redactor: Redact bearer tokens. Defaults to True.
        use_global_error_handler: Report uncaught exceptions and unretrieved
            task exceptions through this logger, then exit. Only one logger per
            process can do this. Skipped in test mode.
        force_global_error_handler: Install the global error handler even in
            test mode.
        redactors: Extra redactors (strings, compiled patterns or callables),
            applied in order before the bearer redactor.
        test_mode: Forces test mode on or off instead of detecting it.

    Raises:
        IllegalLogLevelError: If `minimum_log_level` is not a valid level.
        UnsupportedRedactorError: If a redactor has an unsupported type.
        GlobalHandlerError: If the global error handler cannot be installed.
    """

    def __init__(
        self,
        minimum_log_level: Optional[str] = None,
        formatter: Optional[Formatter] = None,
        use_bearer_redactor: bool = True,
        use_global_error_handler: bool = True,
        force_global_error_handler: bool = False,
        redactors: Iterable[Any] = (),
        test_mode: Optional[bool] = None,
    ):
        resolved_test_mode = is_in_test_mode(test_mode)
        if formatter is None:
            formatter = test_formatter if resolved_test_mode else json_formatter

        state = _LogState(
            formatter=formatter,
            redactors=create_redactor_chain(redactors),
            test_mode=resolved_test_mode,
        )
        if minimum_log_level is not None:
            state.threshold.level = validate_log_level(minimum_log_level)

        if use_bearer_redactor:
            bearer_redactor = BearerRedactor()
            # Only keep tokens for the current handler invocation
            state.events.on(BEFORE_HANDLER, bearer_redactor.reset)
            state.redactors.append(bearer_redactor)

        super().__init__(state)

        if use_global_error_handler:
            register_error_handlers(self, force_global_error_handler)

    @classmethod
    def from_config(
        cls, config: Optional[Dict[str, Any]] = None, **overrides: Any
    ) -> "LambdaLogger":
        """
        Builds a logger from the `logging` section of a configuration file.

        Args:
            config (Optional[Dict[str, Any]]): A loaded configuration. Loaded
                with `load_config()` when omitted.
            **overrides: Constructor arguments taking precedence over the file.
        """
        if config is None:
            config = load_config()
        options = logger_options(config)
        options.update(overrides)
        return cls(**options)

    @property
    def events(self) -> EventEmitter:
        return self._state.events

    @property
    def redactors(self) -> List[Redactor]:
        return self._state.redactors

    def set_key(self, key: str, value: Any) -> None:
        """
        Adds `key` to every following log line.

        A callable `value` is called again each time a line is rendered.

        Raises:
            ReservedKeyError: If `key` is "message" or "severity".
        """
        if key in RESERVED_KEYS:
            raise ReservedKeyError(f'"{key}" is a reserved logger key.')
        self._state.keys[key] = Lazy(value) if callable(value) else value

    def remove_key(self, key: str) -> None:
        self._state.keys.pop(key, None)

    def set_minimum_log_level(self, level: str) -> None:
        self._state.threshold.level = validate_log_level(level)

    def _set_mdc_keys(self, event: Any, context: Any) -> None:
        trace_index = 0

        def next_trace_index() -> int:
            nonlocal trace_index
            index = trace_index
            trace_index += 1
            return index

        self.set_key("traceId", _field(context, "aws_request_id", "awsRequestId"))
        self.set_key("date", get_formatted_date)
        self.set_key("appName", _field(context, "function_name", "functionName"))
        self.set_key(
            "version", _field(context, "function_version", "functionVersion")
        )
        self.set_key("apigTraceId", _request_id(event) or _request_id(context))
        self.set_key("traceIndex", next_trace_index)

    def _attach(self, context: Any) -> None:
        if isinstance(context, MutableMapping):
            context["logger"] = self
        elif context is not None:
            context.logger = self

    def handler(
        self, fn: Callable[[Any, LambdaContext], Awaitable[Any]]
    ) -> Callable[[Any, LambdaContext], Awaitable[Any]]:
        """
        Wraps an async Lambda handler.

        Purpose:
            Each invocation seeds the MDC keys (traceId, date, appName, version,
            apigTraceId, traceIndex) from the event and context, exposes this
            logger as `context.logger` and emits `before_handler` before the
            handler runs.

        Args:
            fn: An `async def handler(event, context)`.

        Returns:
            A coroutine function with the same signature.

        Raises:
            HandlerContractError: When awaited, if `fn` did not return an
                awaitable.
        """

        @functools.wraps(fn)
        async def wrapped(event: Any, context: LambdaContext) -> Any:
            self._set_mdc_keys(event, context)
            self._attach(context)
            self.events.emit(BEFORE_HANDLER, event, context)

            result = fn(event, context)
            if not inspect.isawaitable(result):
                raise HandlerContractError(
                    "Logger wrapped a handler function that did not return a "
                    "promise. Lambda logger only supports async handlers."
                )
            return await result

        return wrapped

    def lambda_handler(
        self, fn: Callable[[Any, LambdaContext], Awaitable[Any]]
    ) -> Callable[[Any, LambdaContext], Any]:
        """
        Wraps an async handler into the synchronous entry point the Lambda
        Python runtime calls.

        Each invocation runs on a fresh event loop. When the global error
        handler is installed, task exceptions nobody retrieved on that loop are
        reported through this logger.
        """
        wrapped = self.handler(fn)

        async def run(event: Any, context: LambdaContext) -> Any:
            interceptor.attach(asyncio.get_running_loop())
            return await wrapped(event, context)

        @functools.wraps(fn)
        def entry(event: Any, context: LambdaContext) -> Any:
            return asyncio.run(run(event, context))

        return entry
