"""Event payloads and state primitives for background sort runs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CoordinatorState(str, Enum):
    """Lifecycle states for one coordinator."""

    IDLE = "idle"
    RUNNING = "running"


class EventKind(str, Enum):
    """Event kinds published to observer-side subscribers."""

    EXCHANGE = "sort.exchange"
    COMPLETE = "sort.complete"


@dataclass(frozen=True)
class ExchangeEvent:
    """Post-swap values at the two positions an algorithm just exchanged."""

    first_value: int
    second_value: int
    first_index: int
    second_index: int
    run_id: str = ""
    sequence: int = 0

    def __post_init__(self) -> None:
        if self.first_index < 0 or self.second_index < 0:
            raise ValueError(
                "exchange indices must be non-negative: ({0}, {1})".format(
                    self.first_index,
                    self.second_index,
                )
            )
        if self.first_index == self.second_index:
            raise ValueError("exchange indices must differ: {0}".format(self.first_index))


@dataclass(frozen=True)
class CompletionEvent:
    """Outcome of one run; exactly one is delivered per run."""

    canceled: bool = False
    fault: Optional[str] = None
    fault_type: str = ""
    run_id: str = ""
    exchange_count: int = 0

    @property
    def succeeded(self) -> bool:
        return not self.canceled and self.fault is None


@dataclass(frozen=True)
class CoordinatorSnapshot:
    """Read-only view of coordinator status."""

    state: CoordinatorState = CoordinatorState.IDLE
    run_id: str = ""
    exchange_count: int = 0
    cancel_requested: bool = False
    array_length: int = 0
    algorithm_name: str = ""
    handler_faults: int = 0

    @property
    def is_running(self) -> bool:
        return self.state == CoordinatorState.RUNNING
