"""Reference sorting routines that follow the coordinator contract."""

from sortbridge.algorithms.exchange import (
    bubble_sort,
    cocktail_sort,
    insertion_sort,
    selection_sort,
    shell_sort,
)
from sortbridge.algorithms.partition import heap_sort, quick_sort
from sortbridge.algorithms.registry import (
    DEFAULT_ALGORITHM,
    UnknownAlgorithmError,
    available_algorithms,
    get_algorithm,
    register_algorithm,
    unregister_algorithm,
)

__all__ = [
    "DEFAULT_ALGORITHM",
    "UnknownAlgorithmError",
    "available_algorithms",
    "bubble_sort",
    "cocktail_sort",
    "get_algorithm",
    "heap_sort",
    "insertion_sort",
    "quick_sort",
    "register_algorithm",
    "selection_sort",
    "shell_sort",
    "unregister_algorithm",
]
