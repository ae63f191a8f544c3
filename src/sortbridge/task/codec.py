"""Packing of an exchanged index pair into one bounded integer.

Some hosts can only carry a single integer from a worker to the UI thread
(a progress percentage field, for example). The pair ``(i, j)`` is packed
positionally as ``i * base + j``; with the default base of 1000 each index
must stay below 1000, which caps the array length the packed channel can
address. The coordinator carries structured pairs unless the packed channel
is selected explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

PROGRESS_BASE = 1000


class ProgressCodecError(ValueError):
    """Raised when an index pair or packed value is outside the codec range."""


@dataclass(frozen=True)
class ProgressCodec:
    base: int = PROGRESS_BASE

    def __post_init__(self) -> None:
        if int(self.base) < 2:
            raise ProgressCodecError("codec base must be at least 2, got {0}".format(self.base))

    @property
    def capacity(self) -> int:
        """Largest array length whose index pairs can be packed."""
        return self.base

    def fits(self, length: int) -> bool:
        return 0 <= int(length) <= self.capacity

    def encode(self, first_index: int, second_index: int) -> int:
        for index in (first_index, second_index):
            if not 0 <= index < self.base:
                raise ProgressCodecError(
                    "index {0} outside packed range [0, {1})".format(index, self.base)
                )
        return first_index * self.base + second_index

    def decode(self, value: int) -> Tuple[int, int]:
        if not 0 <= value < self.base * self.base:
            raise ProgressCodecError(
                "packed value {0} outside range [0, {1})".format(value, self.base * self.base)
            )
        return divmod(value, self.base)


_DEFAULT_CODEC = ProgressCodec()


def encode_progress(first_index: int, second_index: int) -> int:
    return _DEFAULT_CODEC.encode(first_index, second_index)


def decode_progress(value: int) -> Tuple[int, int]:
    return _DEFAULT_CODEC.decode(value)
