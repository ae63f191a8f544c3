from __future__ import annotations

import random

import pytest

from sortbridge.algorithms import (
    UnknownAlgorithmError,
    available_algorithms,
    get_algorithm,
    register_algorithm,
    unregister_algorithm,
)
from sortbridge.task.contract import check_canceled


class _ReplayControl:
    """Replays every reported exchange on a shadow copy."""

    def __init__(self, array, cancel_after=None):
        self.shadow = list(array)
        self.reports = []
        self._cancel_after = cancel_after

    def is_cancellation_requested(self):
        return self._cancel_after is not None and len(self.reports) >= self._cancel_after

    def report(self, first_index, second_index):
        assert first_index != second_index
        assert self.shadow[first_index] != self.shadow[second_index]
        self.shadow[first_index], self.shadow[second_index] = (
            self.shadow[second_index],
            self.shadow[first_index],
        )
        self.reports.append((first_index, second_index))

    def check_canceled(self):
        check_canceled(self)


def _inputs():
    rng = random.Random(20240601)
    yield []
    yield [1]
    yield [2, 1]
    yield [5, 3, 4, 1]
    yield [7, 7, 7, 7]
    yield list(range(12))
    yield list(range(12, 0, -1))
    for _ in range(5):
        yield [rng.randint(0, 30) for _ in range(rng.randint(2, 60))]


@pytest.mark.parametrize("name", ["bubble", "cocktail", "selection", "insertion", "shell", "quick", "heap"])
def test_algorithm_sorts_and_reports_every_exchange(name):
    algorithm = get_algorithm(name)
    for values in _inputs():
        array = list(values)
        control = _ReplayControl(array)
        algorithm(array, control)
        assert array == sorted(values)
        assert control.shadow == array


@pytest.mark.parametrize("name", ["bubble", "cocktail", "selection", "insertion", "shell", "quick", "heap"])
def test_algorithm_stops_promptly_on_cancellation(name):
    algorithm = get_algorithm(name)
    values = list(range(40, 0, -1))
    array = list(values)
    control = _ReplayControl(array, cancel_after=3)

    algorithm(array, control)

    assert len(control.reports) == 3
    assert sorted(array) == sorted(values)
    assert control.shadow == array


def test_sorted_input_reports_nothing():
    for name in available_algorithms():
        array = list(range(10))
        control = _ReplayControl(array)
        get_algorithm(name)(array, control)
        assert control.reports == [], name


def test_registry_lookup_is_case_insensitive():
    assert get_algorithm(" Bubble ") is get_algorithm("bubble")


def test_unknown_algorithm_raises():
    with pytest.raises(UnknownAlgorithmError) as excinfo:
        get_algorithm("bogo")
    assert "bogo" in str(excinfo.value)
    assert isinstance(excinfo.value, KeyError)


def test_register_and_unregister_custom_algorithm():
    def noop(array, control):
        return None

    register_algorithm("noop", noop)
    try:
        assert "noop" in available_algorithms()
        assert get_algorithm("noop") is noop
        with pytest.raises(ValueError):
            register_algorithm("noop", noop)
        register_algorithm("noop", noop, replace=True)
    finally:
        assert unregister_algorithm("noop") is True
    assert "noop" not in available_algorithms()


def test_register_rejects_non_callable():
    with pytest.raises(TypeError):
        register_algorithm("broken", "not callable")  # type: ignore[arg-type]
