"""Deterministic Park-Miller generator seeded from integers or strings."""

from __future__ import annotations

import math
from typing import List, Sequence, TypeVar, Union

T = TypeVar("T")

_MODULUS = 2147483647
_MULTIPLIER = 16807


def hash_seed(text: str) -> int:
    """Fold *text* into a signed 32-bit integer (``h * 31 + unit`` per UTF-16 code unit)."""

    data = text.encode("utf-16-le")
    value = 0
    for offset in range(0, len(data), 2):
        unit = data[offset] | (data[offset + 1] << 8)
        value = ((value << 5) - value + unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def _normalise_state(seed: int) -> int:
    state = seed % _MODULUS
    return state if state else _MODULUS - 1


class SeededRandom:
    """Reproducible source of floats in ``[0, 1)``.

    Identical seeds produce identical sequences on every platform, which is
    what level generation relies on for replay.
    """

    def __init__(self, seed: Union[int, str]) -> None:
        if isinstance(seed, bool):
            raise TypeError("seed must be an int or a str")
        if isinstance(seed, str):
            numeric = hash_seed(seed)
        elif isinstance(seed, int):
            numeric = seed
        else:
            raise TypeError(f"seed must be an int or a str, got {type(seed).__name__}")
        self.seed = seed
        self._state = _normalise_state(numeric)

    def next(self) -> float:
        self._state = (self._state * _MULTIPLIER) % _MODULUS
        return self._state / _MODULUS

    def next_int(self, minimum: int, maximum: int) -> int:
        """Return an integer in ``[minimum, maximum)``."""

        return int(math.floor(self.next() * (maximum - minimum))) + minimum

    def shuffle(self, items: Sequence[T]) -> List[T]:
        """Return a Fisher-Yates shuffled copy of *items*."""

        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.next_int(0, i + 1)
            result[i], result[j] = result[j], result[i]
        return result


def shuffle_array(items: Sequence[T], rng: SeededRandom) -> List[T]:
    return rng.shuffle(items)


__all__ = ["SeededRandom", "hash_seed", "shuffle_array"]
