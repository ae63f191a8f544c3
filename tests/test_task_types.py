from __future__ import annotations

import dataclasses

import pytest

from sortbridge.task.errors import describe_fault
from sortbridge.task.types import (
    CompletionEvent,
    CoordinatorSnapshot,
    CoordinatorState,
    EventKind,
    ExchangeEvent,
)


def test_exchange_event_is_immutable():
    event = ExchangeEvent(first_value=3, second_value=5, first_index=0, second_index=1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.first_value = 9  # type: ignore[misc]


def test_exchange_event_rejects_same_index():
    with pytest.raises(ValueError):
        ExchangeEvent(first_value=1, second_value=1, first_index=2, second_index=2)


def test_exchange_event_rejects_negative_index():
    with pytest.raises(ValueError):
        ExchangeEvent(first_value=1, second_value=2, first_index=-1, second_index=0)


def test_completion_event_defaults_to_success():
    event = CompletionEvent()
    assert event.canceled is False
    assert event.fault is None
    assert event.succeeded is True


def test_completion_event_with_fault_is_not_success():
    assert CompletionEvent(fault="ValueError: boom").succeeded is False
    assert CompletionEvent(canceled=True).succeeded is False


def test_snapshot_running_flag():
    assert CoordinatorSnapshot().is_running is False
    assert CoordinatorSnapshot(state=CoordinatorState.RUNNING).is_running is True


def test_event_kind_values():
    assert EventKind.EXCHANGE.value == "sort.exchange"
    assert EventKind.COMPLETE.value == "sort.complete"


def test_describe_fault_formats_type_and_message():
    assert describe_fault(ValueError("boom")) == "ValueError: boom"
    assert describe_fault(RuntimeError()) == "RuntimeError"
