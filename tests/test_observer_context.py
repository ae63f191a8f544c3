from __future__ import annotations

import threading

import pytest

from sortbridge.algorithms import bubble_sort
from sortbridge.kernel.dispatcher import (
    ObserverContextError,
    QueueObserverContext,
    ThreadObserverContext,
)
from sortbridge.task.coordinator import TaskCoordinator
from sortbridge.task.types import CoordinatorState


def test_posted_callbacks_run_in_fifo_order_on_owner_thread(observer):
    calls = []

    def producer():
        for index in range(20):
            observer.post(lambda index=index: calls.append((index, threading.get_ident())))

    worker = threading.Thread(target=producer)
    worker.start()
    worker.join(timeout=5.0)

    assert observer.pending() == 20
    assert observer.process_pending() == 20
    assert [index for index, _ in calls] == list(range(20))
    assert {ident for _, ident in calls} == {threading.get_ident()}


def test_process_pending_respects_max_items(observer):
    calls = []
    for index in range(5):
        observer.post(lambda index=index: calls.append(index))

    assert observer.process_pending(max_items=2) == 2
    assert calls == [0, 1]
    assert observer.process_pending() == 3


def test_draining_from_foreign_thread_is_rejected(observer):
    caught = []

    def drain():
        try:
            observer.process_pending()
        except ObserverContextError as exc:
            caught.append(exc)

    worker = threading.Thread(target=drain)
    worker.start()
    worker.join(timeout=5.0)

    assert len(caught) == 1


def test_process_until_waits_for_late_posts(observer):
    done = []
    timer = threading.Timer(0.05, lambda: observer.post(lambda: done.append(True)))
    timer.start()
    try:
        assert observer.process_until(lambda: bool(done), timeout=5.0) is True
    finally:
        timer.cancel()


def test_process_until_times_out(observer):
    assert observer.process_until(lambda: False, timeout=0.05) is False


def test_post_never_blocks_the_producer():
    context = QueueObserverContext()
    for _ in range(10000):
        context.post(lambda: None)
    assert context.pending() == 10000


def test_thread_observer_runs_callbacks_on_its_own_thread():
    seen = []
    with ThreadObserverContext(name="test-observer") as context:
        for index in range(3):
            context.post(lambda index=index: seen.append((index, threading.get_ident())))
        assert context.join_pending(timeout=5.0) is True
        observer_ident = context.thread_ident

    assert [index for index, _ in seen] == [0, 1, 2]
    assert {ident for _, ident in seen} == {observer_ident}
    assert observer_ident != threading.get_ident()


def test_thread_observer_survives_callback_errors():
    errors = []
    seen = []
    context = ThreadObserverContext(on_error=errors.append).start()
    try:
        context.post(lambda: 1 / 0)
        context.post(lambda: seen.append("after"))
        assert context.join_pending(timeout=5.0) is True
    finally:
        context.stop()

    assert seen == ["after"]
    assert context.callback_errors == 1
    assert isinstance(errors[0], ZeroDivisionError)
    assert context.running is False


def test_thread_observer_rejects_none_callback():
    context = ThreadObserverContext()
    with pytest.raises(ValueError):
        context.post(None)  # type: ignore[arg-type]


def test_thread_observer_survives_failing_error_callback():
    def broken_on_error(exc):
        raise RuntimeError("error sink down")

    completions = []
    done = threading.Event()
    context = ThreadObserverContext(on_error=broken_on_error).start()
    try:
        context.post(lambda: 1 / 0)
        assert context.join_pending(timeout=5.0) is True
        assert context.running is True

        coordinator = TaskCoordinator(context, [3, 2, 1], bubble_sort)
        coordinator.on_complete(completions.append)
        coordinator.on_complete(lambda _event: done.set())
        coordinator.start()
        assert done.wait(timeout=5.0) is True
    finally:
        context.stop()

    assert context.callback_errors == 1
    assert len(completions) == 1
    assert completions[0].succeeded is True
    assert coordinator.state == CoordinatorState.IDLE
