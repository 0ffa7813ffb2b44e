"""Immutable-by-convention puzzle state and the moves between states."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .vial import Vial

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Move:
    """Pour of ``colors_to_pour`` top segments from one vial index to another."""

    source_vial_index: int
    target_vial_index: int
    colors_to_pour: int

    def reversed(self) -> "Move":
        return Move(self.target_vial_index, self.source_vial_index, self.colors_to_pour)

    def to_payload(self) -> dict:
        return {
            "source": self.source_vial_index,
            "target": self.target_vial_index,
            "amount": self.colors_to_pour,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Move":
        try:
            return cls(int(payload["source"]), int(payload["target"]), int(payload["amount"]))
        except KeyError as exc:
            raise ValueError(f"Move payload is missing key {exc.args[0]!r}") from exc


class GameState:
    """Ordered collection of vials.

    ``color_count`` and ``empty_vial_count`` are informational: they are
    copied through clones and moves but never re-derived from the vials.
    """

    __slots__ = ("vials", "color_count", "empty_vial_count", "total_vials")

    def __init__(self, vials: Iterable[Vial], color_count: int, empty_vial_count: int) -> None:
        self.vials: List[Vial] = list(vials)
        self.color_count = int(color_count)
        self.empty_vial_count = int(empty_vial_count)
        self.total_vials = len(self.vials)

    @classmethod
    def from_segments(
        cls,
        segments: Sequence[Sequence[Any]],
        capacity: int,
        *,
        color_count: Optional[int] = None,
        empty_vial_count: Optional[int] = None,
    ) -> "GameState":
        """Build a state from bottom-to-top segment lists."""

        vials = [Vial(column, capacity) for column in segments]
        if color_count is None:
            color_count = len({segment for vial in vials for segment in vial.segments})
        if empty_vial_count is None:
            empty_vial_count = sum(1 for vial in vials if vial.is_empty())
        return cls(vials, color_count, empty_vial_count)

    def __repr__(self) -> str:
        return f"GameState({self.get_state_hash()!r})"

    def to_segments(self) -> List[List[Any]]:
        return [list(vial.segments) for vial in self.vials]

    def is_complete(self) -> bool:
        return all(vial.is_complete() for vial in self.vials)

    def get_available_moves(self) -> List[Move]:
        """Enumerate legal pours, row-major over ``(source, target)`` pairs."""

        moves: List[Move] = []
        for i, source in enumerate(self.vials):
            if source.is_empty():
                continue
            top = source.get_top_color()
            run = source.top_run_length()
            for j, target in enumerate(self.vials):
                if i == j or not target.can_receive(top):
                    continue
                amount = min(run, target.free_space())
                if amount > 0:
                    moves.append(Move(i, j, amount))
        return moves

    def _rejection(self, move: Move) -> Optional[str]:
        count = len(self.vials)
        src, dst = move.source_vial_index, move.target_vial_index
        if not (0 <= src < count and 0 <= dst < count):
            return "vial index out of range"
        if src == dst:
            return "source and target are the same vial"
        source = self.vials[src]
        if source.is_empty():
            return "source vial is empty"
        if move.colors_to_pour < 1:
            return "amount must be positive"
        if move.colors_to_pour > source.top_run_length():
            return "amount exceeds the source's top run"
        if move.colors_to_pour > self.vials[dst].free_space():
            return "target vial would overflow"
        return None

    def apply_move(self, move: Move) -> "GameState":
        """Return a new state with *move* applied.

        Malformed moves leave the vials untouched: the caller receives an
        unmodified clone and a warning is logged.
        """

        new_state = self.clone()
        reason = self._rejection(move)
        if reason is not None:
            _LOGGER.warning("Ignoring malformed move %s: %s", move, reason)
            return new_state
        source = new_state.vials[move.source_vial_index]
        target = new_state.vials[move.target_vial_index]
        color = source.get_top_color()
        del source.segments[-move.colors_to_pour:]
        target.segments.extend([color] * move.colors_to_pour)
        return new_state

    def get_state_hash(self) -> str:
        return "|".join(",".join(str(segment) for segment in vial.segments) for vial in self.vials)

    def clone(self) -> "GameState":
        return GameState([vial.clone() for vial in self.vials], self.color_count, self.empty_vial_count)


def apply_move(state: GameState, move: Move) -> GameState:
    return state.apply_move(move)


def get_available_moves(state: GameState) -> List[Move]:
    return state.get_available_moves()


def is_complete(state: GameState) -> bool:
    return state.is_complete()


__all__ = ["Move", "GameState", "apply_move", "get_available_moves", "is_complete"]
