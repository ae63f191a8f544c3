"""In-place n log n sorts: quicksort and heapsort."""

from __future__ import annotations

from typing import List, Tuple

from sortbridge.algorithms.exchange import swap
from sortbridge.task.contract import SortControl
from sortbridge.task.errors import SortCanceled


def quick_sort(array: List[int], control: SortControl) -> None:
    """Lomuto partitioning over an explicit stack of ranges."""
    pending: List[Tuple[int, int]] = [(0, len(array) - 1)]
    try:
        while pending:
            low, high = pending.pop()
            if low >= high:
                continue
            pivot = _partition(array, control, low, high)
            # Smaller side last so it is processed first and the stack stays shallow.
            if pivot - low < high - pivot:
                pending.append((pivot + 1, high))
                pending.append((low, pivot - 1))
            else:
                pending.append((low, pivot - 1))
                pending.append((pivot + 1, high))
    except SortCanceled:
        return


def _partition(array: List[int], control: SortControl, low: int, high: int) -> int:
    control.check_canceled()
    middle = (low + high) // 2
    if middle != high and array[middle] != array[high]:
        swap(array, control, middle, high)
    pivot_value = array[high]
    store = low
    for index in range(low, high):
        control.check_canceled()
        if array[index] < pivot_value:
            if index != store:
                swap(array, control, index, store)
            store += 1
    control.check_canceled()
    if store != high and array[store] != array[high]:
        swap(array, control, store, high)
    return store


def heap_sort(array: List[int], control: SortControl) -> None:
    size = len(array)
    for root in range(size // 2 - 1, -1, -1):
        if not _sift_down(array, control, root, size):
            return
    for end in range(size - 1, 0, -1):
        if control.is_cancellation_requested():
            return
        if array[0] != array[end]:
            swap(array, control, 0, end)
        if not _sift_down(array, control, 0, end):
            return


def _sift_down(array: List[int], control: SortControl, root: int, size: int) -> bool:
    """Returns False when cancellation interrupted the sift."""
    while True:
        if control.is_cancellation_requested():
            return False
        largest = root
        left = 2 * root + 1
        right = left + 1
        if left < size and array[left] > array[largest]:
            largest = left
        if right < size and array[right] > array[largest]:
            largest = right
        if largest == root:
            return True
        swap(array, control, root, largest)
        root = largest
