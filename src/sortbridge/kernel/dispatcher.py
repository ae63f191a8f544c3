"""Observer-context marshaling: post callbacks to run on one designated thread."""

from __future__ import annotations

import queue
import threading
import time
from typing import Callable, Optional, Protocol

PostedCallback = Callable[[], None]


class ObserverContextError(RuntimeError):
    """Raised when an observer queue is drained from a foreign thread."""


class ObserverContext(Protocol):
    def post(self, callback: PostedCallback) -> None:
        ...


class QueueObserverContext:
    """Single-consumer FIFO drained by the thread that created it.

    ``post`` may be called from any thread and never blocks. Only the owner
    thread may run the queued callbacks, so everything they touch stays on
    that thread.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[PostedCallback]" = queue.Queue()
        self._owner_ident = threading.get_ident()

    @property
    def owner_ident(self) -> int:
        return self._owner_ident

    def is_owner_thread(self) -> bool:
        return threading.get_ident() == self._owner_ident

    def post(self, callback: PostedCallback) -> None:
        self._queue.put_nowait(callback)

    def pending(self) -> int:
        return self._queue.qsize()

    def process_pending(self, max_items: Optional[int] = None) -> int:
        """Run queued callbacks without waiting; returns how many ran."""
        self._require_owner()
        processed = 0
        while max_items is None or processed < max_items:
            try:
                callback = self._queue.get_nowait()
            except queue.Empty:
                break
            callback()
            processed += 1
        return processed

    def process_until(
        self,
        predicate: Callable[[], bool],
        timeout: Optional[float] = None,
        poll_interval: float = 0.05,
    ) -> bool:
        """Run callbacks as they arrive until ``predicate()`` holds.

        Returns False if ``timeout`` seconds pass first.
        """
        self._require_owner()
        deadline = None if timeout is None else time.monotonic() + max(0.0, timeout)
        while not predicate():
            wait_for = poll_interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return predicate()
                wait_for = min(poll_interval, remaining)
            try:
                callback = self._queue.get(timeout=wait_for)
            except queue.Empty:
                continue
            callback()
        return True

    def _require_owner(self) -> None:
        if not self.is_owner_thread():
            raise ObserverContextError(
                "observer queue must be drained by its owner thread (owner={0}, caller={1})".format(
                    self._owner_ident,
                    threading.get_ident(),
                )
            )


class ThreadObserverContext:
    """Observer context backed by a dedicated consumer thread.

    For hosts that have no event loop of their own. Callback errors are
    passed to ``on_error`` and counted; they do not stop the consumer.
    """

    def __init__(
        self,
        name: str = "sortbridge-observer",
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self._queue: "queue.Queue[Optional[PostedCallback]]" = queue.Queue()
        self._name = name
        self._on_error = on_error
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self.callback_errors = 0

    @property
    def thread_ident(self) -> Optional[int]:
        thread = self._thread
        if thread is None:
            return None
        return thread.ident

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> "ThreadObserverContext":
        with self._lock:
            if self.running:
                return self
            self._thread = threading.Thread(target=self._loop, name=self._name, daemon=True)
            self._thread.start()
        return self

    def post(self, callback: PostedCallback) -> None:
        if callback is None:
            raise ValueError("callback must not be None")
        self._queue.put_nowait(callback)

    def join_pending(self, timeout: Optional[float] = None) -> bool:
        """Wait until everything posted so far has run."""
        marker = threading.Event()
        self.post(marker.set)
        return marker.wait(timeout)

    def stop(self, timeout: Optional[float] = 1.0) -> None:
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._queue.put_nowait(None)
        thread.join(timeout=timeout)
        with self._lock:
            if self._thread is thread and not thread.is_alive():
                self._thread = None

    def __enter__(self) -> "ThreadObserverContext":
        return self.start()

    def __exit__(self, *_exc: object) -> None:
        self.stop()

    def _loop(self) -> None:
        while True:
            callback = self._queue.get()
            if callback is None:
                return
            try:
                callback()
            except Exception as exc:
                self.callback_errors += 1
                self._report_error(exc)

    def _report_error(self, exc: Exception) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(exc)
        except Exception:
            # The consumer keeps draining.
            return
