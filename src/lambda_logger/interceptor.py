# src/lambda_logger/interceptor.py

"""
Process-wide capture of failures that escaped every handler.

An exception that reaches the interpreter's excepthook, or an asyncio task
whose exception nobody retrieved, means a bug the function could not deal with.
The interceptor logs it through one LambdaLogger, so it carries the current MDC
keys and redactors, then terminates the process with exit code 1.

Only one logger per process may own these hooks. The state lives in the
`interceptor` singleton below; tests call `interceptor.reset()` between runs.
"""

import threading
from typing import Any, Callable, Optional, Tuple

from lambda_logger import system
from lambda_logger.exceptions import GlobalHandlerError
from lambda_logger.formatting import format_stack
from lambda_logger.logging import logger as diagnostics

UNCAUGHT_MESSAGE = "uncaught exception (this should never happen!)"
UNHANDLED_MESSAGE = "unhandled rejection (this should never happen!)"


def create_global_error_handlers(
    log: Any, process: system.Process
) -> Tuple[Callable[..., None], Callable[..., None]]:
    """Builds the (uncaught, unhandled) listeners bound to `log`."""

    def on_uncaught(error: Any) -> None:
        log.error(UNCAUGHT_MESSAGE, format_stack(error))
        process.exit(1)

    def on_unhandled(error: Any, loop_context: Optional[dict] = None) -> None:
        log.error(UNHANDLED_MESSAGE, format_stack(error))
        process.exit(1)

    return on_uncaught, on_unhandled


class ErrorInterceptor:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cleared = False
        self._process: Optional[system.Process] = None
        self._handlers: Tuple[Callable[..., None], ...] = ()

    @property
    def installed(self) -> bool:
        return self._cleared

    def register(self, log: Any, force: bool = False) -> bool:
        """
        Installs the global error handlers for `log`.

        Purpose:
            To replace the platform's default reporting of escaped failures
            with log lines that go through the function's own logger.

        Args:
            log: The logger failures are reported through. Its `test_mode`
                attribute decides whether installation is skipped.
            force (bool): Install even in test mode.

        Returns:
            bool: True if the handlers were installed, False if skipped.

        Raises:
            GlobalHandlerError: If handlers were already installed in this
                process, or the process does not have the expected platform
                listeners.
        """
        if getattr(log, "test_mode", False) and not force:
            diagnostics.debug("Skipping global error handlers in test mode.")
            return False

        with self._lock:
            process = system.process
            self._clear_platform_handlers(process)
            on_uncaught, on_unhandled = create_global_error_handlers(log, process)
            process.on(system.UNCAUGHT_EXCEPTION, on_uncaught)
            process.on(system.UNHANDLED_REJECTION, on_unhandled)
            process.bind()
            self._process = process
            self._handlers = (on_uncaught, on_unhandled)

        diagnostics.debug("Installed global error handlers.")
        return True

    def _clear_platform_handlers(self, process: system.Process) -> None:
        if self._cleared:
            raise GlobalHandlerError(
                "tried to setup global handlers twice. You cannot construct two "
                'Loggers with "use_global_error_handler"'
            )

        if len(process.listeners(system.UNCAUGHT_EXCEPTION)) != 1:
            raise GlobalHandlerError(
                f"Logger Assertion Failed: {system.UNCAUGHT_EXCEPTION} does not "
                "have 1 listener(s)"
            )
        expected = system.UNHANDLED_REJECTION_LISTENERS
        if len(process.listeners(system.UNHANDLED_REJECTION)) != expected:
            raise GlobalHandlerError(
                f"Logger Assertion Failed: {system.UNHANDLED_REJECTION} does not "
                f"have {expected} listener(s)"
            )

        process.remove_all_listeners(system.UNCAUGHT_EXCEPTION)
        process.remove_all_listeners(system.UNHANDLED_REJECTION)
        self._cleared = True

    def attach(self, loop: Any) -> None:
        """Routes `loop`'s unretrieved task exceptions to the installed handlers."""
        if self._process is not None:
            self._process.attach(loop)

    def reset(self) -> None:
        """Uninstalls the handlers and forgets that they were ever installed."""
        with self._lock:
            if self._process is not None:
                on_uncaught, on_unhandled = self._handlers
                self._process.off(system.UNCAUGHT_EXCEPTION, on_uncaught)
                self._process.off(system.UNHANDLED_REJECTION, on_unhandled)
                self._process.restore_defaults()
            self._process = None
            self._handlers = ()
            self._cleared = False


interceptor = ErrorInterceptor()


def register_error_handlers(log: Any, force: bool = False) -> bool:
    return interceptor.register(log, force)
