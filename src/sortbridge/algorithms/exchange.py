"""Quadratic and gap-based sorts built from element exchanges."""

from __future__ import annotations

from typing import List

from sortbridge.task.contract import SortControl


def swap(array: List[int], control: SortControl, first_index: int, second_index: int) -> None:
    array[first_index], array[second_index] = array[second_index], array[first_index]
    control.report(first_index, second_index)


def bubble_sort(array: List[int], control: SortControl) -> None:
    for end in range(len(array) - 1, 0, -1):
        swapped = False
        for index in range(end):
            if control.is_cancellation_requested():
                return
            if array[index] > array[index + 1]:
                swap(array, control, index, index + 1)
                swapped = True
        if not swapped:
            return


def cocktail_sort(array: List[int], control: SortControl) -> None:
    low, high = 0, len(array) - 1
    while low < high:
        last = low
        for index in range(low, high):
            if control.is_cancellation_requested():
                return
            if array[index] > array[index + 1]:
                swap(array, control, index, index + 1)
                last = index
        high = last
        if low >= high:
            return
        last = high
        for index in range(high, low, -1):
            if control.is_cancellation_requested():
                return
            if array[index - 1] > array[index]:
                swap(array, control, index - 1, index)
                last = index
        low = last


def selection_sort(array: List[int], control: SortControl) -> None:
    size = len(array)
    for start in range(size - 1):
        smallest = start
        for index in range(start + 1, size):
            if control.is_cancellation_requested():
                return
            if array[index] < array[smallest]:
                smallest = index
        if smallest != start:
            swap(array, control, start, smallest)


def insertion_sort(array: List[int], control: SortControl) -> None:
    for start in range(1, len(array)):
        index = start
        while index > 0:
            if control.is_cancellation_requested():
                return
            if array[index - 1] <= array[index]:
                break
            swap(array, control, index - 1, index)
            index -= 1


def shell_sort(array: List[int], control: SortControl) -> None:
    # Knuth gap sequence: 1, 4, 13, 40, ...
    size = len(array)
    gap = 1
    while gap < size // 3:
        gap = gap * 3 + 1
    while gap >= 1:
        for start in range(gap, size):
            index = start
            while index >= gap:
                if control.is_cancellation_requested():
                    return
                if array[index - gap] <= array[index]:
                    break
                swap(array, control, index - gap, index)
                index -= gap
        gap //= 3
