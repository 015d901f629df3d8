# src/lambda_logger/system.py

"""
Process level collaborators: the console the loggers write to and the
process-wide failure hooks the global error interceptor takes over.

Both are reached through this module's attributes (`system.console`,
`system.process`) at call time, so tests can replace them with fakes.
"""

import os
import sys
import threading
import traceback
from typing import Any, Dict, Optional

from lambda_logger.events import EventEmitter

UNCAUGHT_EXCEPTION = "uncaught_exception"
UNHANDLED_REJECTION = "unhandled_rejection"

# Number of unhandled_rejection listeners the platform installs before any
# logger is constructed.
UNHANDLED_REJECTION_LISTENERS = 1


class Console:
    """
    Writes finished log lines to the standard streams.

    debug and info lines go to stdout, warn and error lines go to stderr. The
    Lambda runtime forwards both streams to CloudWatch.
    """

    def _write(self, stream: Any, line: str) -> None:
        print(line, file=stream, flush=True)

    def log(self, line: str) -> None:
        self._write(sys.stdout, line)

    def debug(self, line: str) -> None:
        self._write(sys.stdout, line)

    def info(self, line: str) -> None:
        self._write(sys.stdout, line)

    def warn(self, line: str) -> None:
        self._write(sys.stderr, line)

    def error(self, line: str) -> None:
        self._write(sys.stderr, line)


class Process(EventEmitter):
    """
    Process-wide failure hooks exposed as events.

    uncaught_exception(error)
        An exception escaped the main thread or another thread.
    unhandled_rejection(error, loop_context)
        An asyncio task or future failed and its exception was never retrieved.

    Each event starts with one default listener that reports the failure the
    way the interpreter or asyncio would on its own. The hooks only reach these
    events after `bind()` (interpreter hooks) or `attach(loop)` (an event loop).
    """

    def __init__(self) -> None:
        super().__init__()
        self._bound = False
        self.restore_defaults()

    def restore_defaults(self) -> None:
        """Re-adds the default reporting listeners that are missing."""
        defaults = (
            (UNCAUGHT_EXCEPTION, self._report_uncaught),
            (UNHANDLED_REJECTION, self._report_unhandled),
        )
        for event, listener in defaults:
            if listener not in self.listeners(event):
                self.on(event, listener)

    @staticmethod
    def _report_uncaught(error: BaseException) -> None:
        sys.__excepthook__(type(error), error, error.__traceback__)

    @staticmethod
    def _report_unhandled(
        error: BaseException, loop_context: Optional[Dict[str, Any]] = None
    ) -> None:
        message = (loop_context or {}).get("message", "Unhandled exception in event loop")
        print(message, file=sys.stderr)
        traceback.print_exception(type(error), error, error.__traceback__)

    def bind(self) -> None:
        """Routes the interpreter's exception hooks into this object's events."""
        if self._bound:
            return
        sys.excepthook = self._excepthook
        threading.excepthook = self._thread_excepthook
        self._bound = True

    def _excepthook(self, exc_type, exc_value, exc_tb) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        self.emit(UNCAUGHT_EXCEPTION, exc_value)

    def _thread_excepthook(self, args) -> None:
        if args.exc_type is SystemExit:
            return
        self.emit(UNCAUGHT_EXCEPTION, args.exc_value)

    def loop_exception_handler(self, loop, loop_context: Dict[str, Any]) -> None:
        error = loop_context.get("exception")
        if error is None:
            loop.default_exception_handler(loop_context)
            return
        self.emit(UNHANDLED_REJECTION, error, loop_context)

    def attach(self, loop) -> None:
        loop.set_exception_handler(self.loop_exception_handler)

    def exit(self, code: int) -> None:
        sys.stdout.flush()
        sys.stderr.flush()
        os._exit(code)


console = Console()
process = Process()
