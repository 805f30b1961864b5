"""Type-based event dispatching with an optional deferred queue."""

from __future__ import annotations

import itertools
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Optional, Tuple


@dataclass(frozen=True)
class HandlerIdentifier:
    """Opaque token returned on registration, used to remove a handler."""

    serial: int


class Dispatcher:
    """Routes events to handlers registered for their type.

    A handler registered for ``object`` receives every event. Handlers run
    in registration order. Events can also be queued and delivered later
    with :meth:`sync_all_queues`.

    If ``on_error`` is given, exceptions raised by handlers are passed to it
    and dispatching continues; otherwise they propagate to the caller.
    """

    def __init__(self, on_error: Optional[Callable[[BaseException], None]] = None) -> None:
        self._handlers: Dict[HandlerIdentifier, Tuple[type, Callable[[Any], Any]]] = {}
        self._serials = itertools.count()
        self._pending: Deque[Any] = deque()
        self._queue_open = False
        self._on_error = on_error

    def register_handler(self, event_type: type, handler: Callable[[Any], Any]) -> HandlerIdentifier:
        """Call ``handler`` for every dispatched event that is an ``event_type``."""
        identifier = HandlerIdentifier(next(self._serials))
        self._handlers[identifier] = (event_type, handler)
        return identifier

    def unregister_handler(self, identifier: HandlerIdentifier) -> None:
        """Remove a handler; unknown identifiers are ignored."""
        self._handlers.pop(identifier, None)

    def unregister_all_handlers(self) -> None:
        """Remove every registered handler."""
        self._handlers.clear()

    def dispatch(self, event: Any) -> None:
        """Deliver ``event`` to all handlers registered for its type."""
        for identifier, (event_type, handler) in list(self._handlers.items()):
            if identifier not in self._handlers:
                continue
            if not isinstance(event, event_type):
                continue
            try:
                handler(event)
            except Exception as exc:  # noqa: BLE001 - handed to the error callback
                if self._on_error is None:
                    raise
                self._on_error(exc)

    def open_queue(self) -> None:
        """Start accepting queued events."""
        self._queue_open = True

    @property
    def queue_open(self) -> bool:
        """Whether queued events are currently accepted."""
        return self._queue_open

    def enqueue(self, event: Any) -> None:
        """Queue ``event`` for later delivery; dropped when no queue is open."""
        if self._queue_open:
            self._pending.append(event)

    def sync_all_queues(self) -> None:
        """Deliver every queued event, including ones queued meanwhile."""
        while self._pending:
            self.dispatch(self._pending.popleft())

    def remove_all_queues(self) -> None:
        """Discard queued events and stop accepting new ones."""
        self._pending.clear()
        self._queue_open = False