"""A minimal observer: handlers connected to a signal are called when it is emitted."""

from __future__ import annotations

from typing import Any, Callable

Handler = Callable[..., Any]


class Signal:
    """A list of handlers called in connection order on every emit."""

    def __init__(self) -> None:
        self._handlers: list[Handler] = []

    def connect(self, handler: Handler) -> Handler:
        """Register a handler; returns it so this can be used as a decorator."""
        self._handlers.append(handler)
        return handler

    def disconnect(self, handler: Handler) -> None:
        """Remove a handler; raises ValueError if it was not connected."""
        try:
            self._handlers.remove(handler)
        except ValueError:
            raise ValueError("handler is not connected to this signal") from None

    def emit(self, *args: Any) -> None:
        """Call every connected handler with the given arguments."""
        for handler in list(self._handlers):
            handler(*args)

    def __len__(self) -> int:
        return len(self._handlers)