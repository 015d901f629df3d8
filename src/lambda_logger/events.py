# src/lambda_logger/events.py

from collections import defaultdict
from typing import Any, Callable, DefaultDict, List, Optional

# Emitted by the handler wrapper with (event, context) before the wrapped
# handler runs.
BEFORE_HANDLER = "before_handler"

Listener = Callable[..., Any]


class EventEmitter:
    """
    A minimal synchronous publish/subscribe channel.

    Listeners run in registration order on the emitting thread. An exception
    raised by a listener propagates to the caller of `emit` and stops the
    remaining listeners from running.

    Example:
        >>> events = EventEmitter()
        >>> @events.on(BEFORE_HANDLER)
        ... def reset(event, context):
        ...     ...
    """

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Optional[Listener] = None):
        """
        Subscribes `listener` to `event`.

        Can also be used as a decorator by omitting `listener`.
        """
        if listener is None:

            def decorator(fn: Listener) -> Listener:
                self._listeners[event].append(fn)
                return fn

            return decorator

        self._listeners[event].append(listener)
        return listener

    def off(self, event: str, listener: Listener) -> None:
        try:
            self._listeners[event].remove(listener)
        except ValueError:
            pass

    def listeners(self, event: str) -> List[Listener]:
        return list(self._listeners.get(event, ()))

    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def emit(self, event: str, *args: Any) -> bool:
        """
        Calls every listener of `event` with `args`.

        Returns:
            bool: True if at least one listener was called.
        """
        # Copy so listeners can unsubscribe themselves while being notified.
        listeners = self.listeners(event)
        for listener in listeners:
            listener(*args)
        return bool(listeners)
