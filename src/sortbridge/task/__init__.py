"""Background sort coordination primitives."""

from sortbridge.task.codec import ProgressCodec, ProgressCodecError, decode_progress, encode_progress
from sortbridge.task.contract import CancellationToken, SortAlgorithm, SortControl
from sortbridge.task.coordinator import (
    ALLOWED_PROGRESS_CHANNELS,
    PROGRESS_CHANNEL_PACKED,
    PROGRESS_CHANNEL_STRUCTURED,
    TaskCoordinator,
)
from sortbridge.task.errors import (
    ChannelCapacityError,
    InvalidExchangeReport,
    MissingConfiguration,
    PreconditionViolation,
    SortCanceled,
    SortTaskError,
)
from sortbridge.task.types import (
    CompletionEvent,
    CoordinatorSnapshot,
    CoordinatorState,
    EventKind,
    ExchangeEvent,
)

__all__ = [
    "ALLOWED_PROGRESS_CHANNELS",
    "CancellationToken",
    "ChannelCapacityError",
    "CompletionEvent",
    "CoordinatorSnapshot",
    "CoordinatorState",
    "EventKind",
    "ExchangeEvent",
    "InvalidExchangeReport",
    "MissingConfiguration",
    "PROGRESS_CHANNEL_PACKED",
    "PROGRESS_CHANNEL_STRUCTURED",
    "PreconditionViolation",
    "ProgressCodec",
    "ProgressCodecError",
    "SortAlgorithm",
    "SortCanceled",
    "SortControl",
    "SortTaskError",
    "TaskCoordinator",
    "decode_progress",
    "encode_progress",
]
