"""Bounded stack of colour segments."""

from __future__ import annotations

from typing import Hashable, Iterable, List, Optional

from project_config import get_section

Color = Hashable

DEFAULT_CAPACITY = int(get_section("puzzle.vial_capacity", default=4))


class Vial:
    """Column of liquid segments ordered bottom to top.

    ``segments[-1]`` is the top of the vial.  Callers keep the length within
    ``capacity``; the queries below are total over every such state.
    """

    __slots__ = ("segments", "capacity")

    def __init__(self, segments: Optional[Iterable[Color]] = None, capacity: int = DEFAULT_CAPACITY) -> None:
        self.segments: List[Color] = list(segments or [])
        self.capacity = int(capacity)

    def __repr__(self) -> str:
        return f"Vial({self.segments!r}, capacity={self.capacity})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vial):
            return NotImplemented
        return self.capacity == other.capacity and self.segments == other.segments

    def __len__(self) -> int:
        return len(self.segments)

    def is_empty(self) -> bool:
        return not self.segments

    def is_full(self) -> bool:
        return len(self.segments) == self.capacity

    def is_complete(self) -> bool:
        """Empty, or filled to capacity with a single colour."""

        if self.is_empty():
            return True
        if not self.is_full():
            return False
        first = self.segments[0]
        return all(segment == first for segment in self.segments)

    def get_top_color(self) -> Optional[Color]:
        return self.segments[-1] if self.segments else None

    def can_receive(self, color: Color) -> bool:
        if self.is_full():
            return False
        return self.is_empty() or self.get_top_color() == color

    def top_run_length(self) -> int:
        """Number of contiguous segments matching the top colour."""

        if not self.segments:
            return 0
        top = self.segments[-1]
        count = 0
        for segment in reversed(self.segments):
            if segment != top:
                break
            count += 1
        return count

    def free_space(self) -> int:
        return self.capacity - len(self.segments)

    def clone(self) -> "Vial":
        return Vial(self.segments, self.capacity)


__all__ = ["Color", "DEFAULT_CAPACITY", "Vial"]
