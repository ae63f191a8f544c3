"""Observer-side subscription registry for sort events."""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List, Optional

from sortbridge.kernel.types import EventHandler

WILDCARD = "*"

HandlerErrorCallback = Callable[[str, EventHandler, Exception], None]


def _kind_key(kind: Any) -> str:
    return str(getattr(kind, "value", kind))


class Subscription:
    """Handle returned by ``subscribe``; ``cancel()`` removes the handler."""

    def __init__(self, registry: "SubscriptionRegistry", kind: str, handler: EventHandler) -> None:
        self._registry = registry
        self.kind = kind
        self.handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> bool:
        if not self._active:
            return False
        self._active = False
        return self._registry.unsubscribe(self.kind, self.handler)


class SubscriptionRegistry:
    """Kind -> handlers mapping with per-handler fault isolation.

    Handlers run in registration order; wildcard handlers run after the
    handlers registered for the specific kind.
    """

    def __init__(self, on_error: Optional[HandlerErrorCallback] = None) -> None:
        self._subscribers: DefaultDict[str, List[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()
        self._on_error = on_error

    def subscribe(self, kind: Any, handler: EventHandler) -> Subscription:
        if not callable(handler):
            raise TypeError("handler must be callable")
        key = _kind_key(kind)
        with self._lock:
            self._subscribers[key].append(handler)
        return Subscription(self, key, handler)

    def unsubscribe(self, kind: Any, handler: EventHandler) -> bool:
        key = _kind_key(kind)
        with self._lock:
            handlers = self._subscribers.get(key)
            if not handlers or handler not in handlers:
                return False
            handlers.remove(handler)
            return True

    def handler_count(self, kind: Any) -> int:
        with self._lock:
            return len(self._subscribers.get(_kind_key(kind), []))

    def publish(self, kind: Any, event: Any) -> int:
        """Deliver ``event`` to every handler; returns the number of faults."""
        key = _kind_key(kind)
        with self._lock:
            handlers = list(self._subscribers.get(key, []))
            if key != WILDCARD:
                handlers += list(self._subscribers.get(WILDCARD, []))
        faults = 0
        for handler in handlers:
            try:
                handler(event)
            except Exception as exc:
                faults += 1
                self._report_error(key, handler, exc)
        return faults

    def _report_error(self, kind: str, handler: EventHandler, exc: Exception) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(kind, handler, exc)
        except Exception:
            # Remaining handlers still run.
            return
