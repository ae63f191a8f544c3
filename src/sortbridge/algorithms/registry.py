"""Name -> sorting routine registry used by the CLI and configuration."""

from __future__ import annotations

import threading
from typing import Dict, List

from sortbridge.algorithms.exchange import (
    bubble_sort,
    cocktail_sort,
    insertion_sort,
    selection_sort,
    shell_sort,
)
from sortbridge.algorithms.partition import heap_sort, quick_sort
from sortbridge.task.contract import SortAlgorithm

DEFAULT_ALGORITHM = "bubble"


class UnknownAlgorithmError(KeyError):
    """Raised when a sorting routine name is not registered."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown algorithm"


_lock = threading.Lock()
_ALGORITHMS: Dict[str, SortAlgorithm] = {
    "bubble": bubble_sort,
    "cocktail": cocktail_sort,
    "selection": selection_sort,
    "insertion": insertion_sort,
    "shell": shell_sort,
    "quick": quick_sort,
    "heap": heap_sort,
}


def _normalize_name(name: object) -> str:
    return str(name or "").strip().lower()


def available_algorithms() -> List[str]:
    with _lock:
        return sorted(_ALGORITHMS.keys())


def get_algorithm(name: str) -> SortAlgorithm:
    normalized = _normalize_name(name)
    with _lock:
        algorithm = _ALGORITHMS.get(normalized)
    if algorithm is None:
        raise UnknownAlgorithmError(
            "unknown algorithm '{0}', available: {1}".format(name, "|".join(available_algorithms()))
        )
    return algorithm


def register_algorithm(name: str, algorithm: SortAlgorithm, replace: bool = False) -> None:
    normalized = _normalize_name(name)
    if not normalized:
        raise ValueError("algorithm name must not be empty")
    if not callable(algorithm):
        raise TypeError("algorithm must be callable")
    with _lock:
        if normalized in _ALGORITHMS and not replace:
            raise ValueError("algorithm '{0}' is already registered".format(normalized))
        _ALGORITHMS[normalized] = algorithm


def unregister_algorithm(name: str) -> bool:
    with _lock:
        return _ALGORITHMS.pop(_normalize_name(name), None) is not None
