"""Single-run coordinator bridging a background sort to an observer context."""

from __future__ import annotations

import operator
import threading
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple

from sortbridge.kernel.debug_log import DebugLogWriter
from sortbridge.kernel.dispatcher import ObserverContext
from sortbridge.kernel.eventbus import WILDCARD, Subscription, SubscriptionRegistry
from sortbridge.kernel.types import EventHandler, new_id
from sortbridge.task.codec import ProgressCodec
from sortbridge.task.contract import CancellationToken, SortAlgorithm, algorithm_name, check_canceled
from sortbridge.task.errors import (
    ChannelCapacityError,
    InvalidExchangeReport,
    MissingConfiguration,
    PreconditionViolation,
    SortCanceled,
    describe_fault,
)
from sortbridge.task.types import (
    CompletionEvent,
    CoordinatorSnapshot,
    CoordinatorState,
    EventKind,
    ExchangeEvent,
)

PROGRESS_CHANNEL_STRUCTURED = "structured"
PROGRESS_CHANNEL_PACKED = "packed"
ALLOWED_PROGRESS_CHANNELS = (PROGRESS_CHANNEL_STRUCTURED, PROGRESS_CHANNEL_PACKED)

HandlerFaultCallback = Callable[[str, EventHandler, Exception], None]

_ALLOWED_KINDS = {kind.value for kind in EventKind} | {WILDCARD}


@dataclass
class _SortRun:
    run_id: str
    array: List[int]
    algorithm: SortAlgorithm
    token: CancellationToken
    channel: str
    exchange_count: int = 0
    thread: Optional[threading.Thread] = None


class _RunControl:
    """``SortControl`` handed to the algorithm for one run."""

    def __init__(self, coordinator: "TaskCoordinator", run: _SortRun) -> None:
        self._coordinator = coordinator
        self._run = run

    def is_cancellation_requested(self) -> bool:
        return self._run.token.is_cancellation_requested()

    def report(self, first_index: int, second_index: int) -> None:
        self._coordinator._on_report(self._run, first_index, second_index)

    def check_canceled(self) -> None:
        check_canceled(self)


class TaskCoordinator:
    """Runs one sort at a time on a worker thread and republishes its
    progress as ``ExchangeEvent``/``CompletionEvent`` on the observer context.

    Exchange events arrive in report order and the completion event is
    always the last event of a run. The coordinator is back to IDLE when
    completion handlers run, so they may start the next run.
    """

    def __init__(
        self,
        observer: ObserverContext,
        array: Optional[List[int]] = None,
        algorithm: Optional[SortAlgorithm] = None,
        *,
        progress_channel: str = PROGRESS_CHANNEL_STRUCTURED,
        step_delay_ms: int = 0,
        debug_log: Optional[DebugLogWriter] = None,
        on_handler_error: Optional[HandlerFaultCallback] = None,
        codec: Optional[ProgressCodec] = None,
    ) -> None:
        channel = str(progress_channel or "").strip().lower()
        if channel not in ALLOWED_PROGRESS_CHANNELS:
            raise ValueError(
                "unsupported progress channel '{0}', expected one of: {1}".format(
                    progress_channel,
                    "|".join(ALLOWED_PROGRESS_CHANNELS),
                )
            )
        self._observer = observer
        self._array = array
        self._algorithm = algorithm
        self._progress_channel = channel
        self._codec = codec or ProgressCodec()
        self._step_delay_sec = max(0, int(step_delay_ms or 0)) / 1000.0
        self._debug_log = debug_log
        self._on_handler_error = on_handler_error
        self._lock = threading.RLock()
        self._state: CoordinatorState = CoordinatorState.IDLE
        self._run: Optional[_SortRun] = None
        self._run_counter = 0
        self._handler_faults = 0
        self._registry = SubscriptionRegistry(on_error=self._on_handler_fault)

    @property
    def state(self) -> CoordinatorState:
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state == CoordinatorState.RUNNING

    @property
    def array(self) -> Optional[List[int]]:
        return self._array

    @property
    def algorithm(self) -> Optional[SortAlgorithm]:
        return self._algorithm

    @property
    def progress_channel(self) -> str:
        return self._progress_channel

    def snapshot(self) -> CoordinatorSnapshot:
        with self._lock:
            run = self._run
            return CoordinatorSnapshot(
                state=self._state,
                run_id=run.run_id if run is not None else "",
                exchange_count=run.exchange_count if run is not None else 0,
                cancel_requested=run.token.is_cancellation_requested() if run is not None else False,
                array_length=len(self._array) if self._array is not None else 0,
                algorithm_name=algorithm_name(self._algorithm),
                handler_faults=self._handler_faults,
            )

    def configure(
        self,
        array: Optional[List[int]] = None,
        algorithm: Optional[SortAlgorithm] = None,
    ) -> None:
        """Replace the array and/or algorithm used by the next run."""
        with self._lock:
            if self._state == CoordinatorState.RUNNING:
                raise PreconditionViolation(
                    "cannot configure while run {0} is in progress".format(self._current_run_id())
                )
            if array is not None:
                self._array = array
            if algorithm is not None:
                if not callable(algorithm):
                    raise TypeError("algorithm must be callable")
                self._algorithm = algorithm

    def start(self) -> str:
        """Launch the configured algorithm on a worker thread; returns the run id."""
        with self._lock:
            if self._state == CoordinatorState.RUNNING:
                raise PreconditionViolation(
                    "a sort run is already in progress (run_id={0})".format(self._current_run_id())
                )
            if self._array is None or self._algorithm is None:
                missing = [
                    name
                    for name, value in (("array", self._array), ("algorithm", self._algorithm))
                    if value is None
                ]
                raise MissingConfiguration(
                    "cannot start without {0} configured".format(" and ".join(missing))
                )
            if self._progress_channel == PROGRESS_CHANNEL_PACKED and not self._codec.fits(len(self._array)):
                raise ChannelCapacityError(
                    "packed progress channel addresses at most {0} elements, array has {1}".format(
                        self._codec.capacity,
                        len(self._array),
                    )
                )

            self._run_counter += 1
            run = _SortRun(
                run_id=new_id("run"),
                array=self._array,
                algorithm=self._algorithm,
                token=CancellationToken(),
                channel=self._progress_channel,
            )
            run.thread = threading.Thread(
                target=self._run_worker,
                args=(run,),
                name="sortbridge-worker-{0}".format(self._run_counter),
                daemon=True,
            )
            self._run = run
            self._state = CoordinatorState.RUNNING
            self._log(
                "info",
                "run.started",
                "run started",
                run.run_id,
                {
                    "algorithm": algorithm_name(run.algorithm),
                    "array_length": len(run.array),
                    "progress_channel": run.channel,
                },
            )
            try:
                run.thread.start()
            except RuntimeError:
                self._run = None
                self._state = CoordinatorState.IDLE
                raise
            return run.run_id

    def request_cancel(self) -> bool:
        """Ask the running algorithm to stop; returns False when idle."""
        with self._lock:
            run = self._run
            if self._state != CoordinatorState.RUNNING or run is None:
                return False
        if run.token.request():
            self._log("info", "run.cancel_requested", "cancellation requested", run.run_id)
        return True

    def join_worker(self, timeout: Optional[float] = None) -> bool:
        """Wait for the current worker thread to exit.

        Events are still delivered only when the observer context runs them.
        """
        with self._lock:
            run = self._run
        if run is None or run.thread is None:
            return True
        run.thread.join(timeout)
        return not run.thread.is_alive()

    def subscribe(self, kind: Any, handler: EventHandler) -> Subscription:
        key = str(getattr(kind, "value", kind))
        if key not in _ALLOWED_KINDS:
            raise ValueError("unknown event kind: {0}".format(key))
        return self._registry.subscribe(key, handler)

    def unsubscribe(self, kind: Any, handler: EventHandler) -> bool:
        return self._registry.unsubscribe(kind, handler)

    def on_exchange(self, handler: Callable[[ExchangeEvent], None]) -> Subscription:
        return self.subscribe(EventKind.EXCHANGE, handler)

    def on_complete(self, handler: Callable[[CompletionEvent], None]) -> Subscription:
        return self.subscribe(EventKind.COMPLETE, handler)

    # Worker thread.

    def _run_worker(self, run: _SortRun) -> None:
        control = _RunControl(self, run)
        canceled = False
        fault: Optional[str] = None
        fault_type = ""
        finished = False
        try:
            run.algorithm(run.array, control)
            canceled = run.token.is_cancellation_requested()
            finished = True
        except SortCanceled as exc:
            finished = True
            if run.token.is_cancellation_requested():
                canceled = True
            else:
                # Nobody asked for this stop.
                fault, fault_type = self._record_fault(run, exc)
        except Exception as exc:
            finished = True
            fault, fault_type = self._record_fault(run, exc)
        finally:
            if not finished:
                fault = "worker interrupted"
                fault_type = "BaseException"
            self._observer.post(
                partial(self._deliver_completion, run, canceled, fault, fault_type, run.exchange_count)
            )

    def _record_fault(self, run: _SortRun, exc: Exception) -> Tuple[str, str]:
        fault = describe_fault(exc)
        fault_type = type(exc).__name__
        self._log(
            "error",
            "run.faulted",
            fault,
            run.run_id,
            {"fault_type": fault_type, "exchange_count": run.exchange_count},
        )
        return fault, fault_type

    def _on_report(self, run: _SortRun, first_index: int, second_index: int) -> None:
        first_index = operator.index(first_index)
        second_index = operator.index(second_index)
        length = len(run.array)
        if not (0 <= first_index < length and 0 <= second_index < length):
            raise InvalidExchangeReport(
                "exchange ({0}, {1}) outside array of length {2}".format(first_index, second_index, length)
            )
        if first_index == second_index:
            raise InvalidExchangeReport("exchange of position {0} with itself".format(first_index))

        run.exchange_count += 1
        sequence = run.exchange_count
        first_value = run.array[first_index]
        second_value = run.array[second_index]
        if run.channel == PROGRESS_CHANNEL_PACKED:
            packed = self._codec.encode(first_index, second_index)
            self._observer.post(
                partial(self._deliver_packed_exchange, run, packed, first_value, second_value, sequence)
            )
        else:
            self._observer.post(
                partial(
                    self._deliver_exchange,
                    run,
                    first_index,
                    second_index,
                    first_value,
                    second_value,
                    sequence,
                )
            )
        if self._step_delay_sec > 0:
            run.token.wait(self._step_delay_sec)

    # Observer context.

    def _deliver_packed_exchange(
        self,
        run: _SortRun,
        packed: int,
        first_value: int,
        second_value: int,
        sequence: int,
    ) -> None:
        first_index, second_index = self._codec.decode(packed)
        self._deliver_exchange(run, first_index, second_index, first_value, second_value, sequence)

    def _deliver_exchange(
        self,
        run: _SortRun,
        first_index: int,
        second_index: int,
        first_value: int,
        second_value: int,
        sequence: int,
    ) -> None:
        event = ExchangeEvent(
            first_value=first_value,
            second_value=second_value,
            first_index=first_index,
            second_index=second_index,
            run_id=run.run_id,
            sequence=sequence,
        )
        self._registry.publish(EventKind.EXCHANGE, event)

    def _deliver_completion(
        self,
        run: _SortRun,
        canceled: bool,
        fault: Optional[str],
        fault_type: str,
        exchange_count: int,
    ) -> None:
        event = CompletionEvent(
            canceled=bool(canceled),
            fault=fault,
            fault_type=fault_type,
            run_id=run.run_id,
            exchange_count=exchange_count,
        )
        with self._lock:
            if self._run is run:
                self._run = None
                self._state = CoordinatorState.IDLE
        self._log(
            "info",
            "run.completed",
            "run completed",
            run.run_id,
            {
                "canceled": event.canceled,
                "fault": event.fault,
                "exchange_count": exchange_count,
            },
        )
        self._registry.publish(EventKind.COMPLETE, event)

    def _on_handler_fault(self, kind: str, handler: EventHandler, exc: Exception) -> None:
        with self._lock:
            self._handler_faults += 1
        self._log(
            "warn",
            "handler.faulted",
            describe_fault(exc),
            "",
            {"event_kind": kind, "handler": getattr(handler, "__qualname__", repr(handler))},
        )
        if self._on_handler_error is not None:
            self._on_handler_error(kind, handler, exc)

    def _current_run_id(self) -> str:
        return self._run.run_id if self._run is not None else ""

    def _log(
        self,
        level: str,
        event_type: str,
        message: str,
        run_id: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        if self._debug_log is None:
            return
        self._debug_log.write_entry(
            level=level,
            component="coordinator",
            kind="lifecycle",
            message=message,
            run_id=run_id,
            event_type=event_type,
            data=data,
        )
