"""Contract between the coordinator and an injected sorting routine.

A sorting routine is any callable ``algorithm(array, control)``. It sorts
``array`` in place and, through ``control``:

* polls ``control.is_cancellation_requested()`` at least once per
  comparison/swap step and returns promptly once it is set (or raises
  ``SortCanceled`` via ``control.check_canceled()``), leaving the array
  valid but not necessarily sorted;
* calls ``control.report(i, j)`` right after every true exchange of
  positions ``i`` and ``j``, and never for moves that change nothing.

Returning normally and raising are both observable outcomes.
"""

from __future__ import annotations

import threading
from typing import List, Optional, Protocol

from sortbridge.task.errors import SortCanceled


class CancellationToken:
    """Cooperative cancellation flag shared by the coordinator and one run."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def request(self) -> bool:
        """Set the flag. Returns False if it was already set."""
        if self._event.is_set():
            return False
        self._event.set()
        return True

    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)


class SortControl(Protocol):
    def is_cancellation_requested(self) -> bool:
        ...

    def report(self, first_index: int, second_index: int) -> None:
        ...

    def check_canceled(self) -> None:
        ...


class SortAlgorithm(Protocol):
    def __call__(self, array: List[int], control: SortControl) -> None:
        ...


def check_canceled(control: SortControl) -> None:
    if control.is_cancellation_requested():
        raise SortCanceled("sort canceled")


def algorithm_name(algorithm: object) -> str:
    if algorithm is None:
        return ""
    name = getattr(algorithm, "algorithm_name", None) or getattr(algorithm, "__name__", None)
    if name:
        return str(name)
    return type(algorithm).__name__
