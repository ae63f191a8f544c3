"""Error types raised by the sort coordinator and its collaborators."""

from __future__ import annotations


class SortTaskError(RuntimeError):
    """Base class for coordinator errors."""


class PreconditionViolation(SortTaskError):
    """Raised when a control call is made in the wrong coordinator state."""


class MissingConfiguration(SortTaskError):
    """Raised when a run is started without an array or an algorithm."""


class ChannelCapacityError(SortTaskError):
    """Raised when the packed progress channel cannot address the array."""


class InvalidExchangeReport(SortTaskError):
    """Raised inside the worker when an algorithm reports a non-exchange."""


class SortCanceled(SortTaskError):
    """Raised by an algorithm to acknowledge a cancellation request."""


def describe_fault(exc: BaseException) -> str:
    message = str(exc).strip()
    if not message:
        return type(exc).__name__
    return "{0}: {1}".format(type(exc).__name__, message)
