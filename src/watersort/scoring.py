"""Pluggable move scorers used by the solver and the level generator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .game_state import GameState, Move
from .puzzle_utils import calculate_entropy, calculate_fragmentation, consolidation_score


class MoveScorer(Protocol):
    """Callable ranking a move from *state*; higher scores are preferred."""

    def __call__(self, state: GameState, move: Move) -> float:
        ...


class ConsolidationScorer:
    """Solver ordering favouring completed vials and same-colour pours."""

    def __call__(self, state: GameState, move: Move) -> float:
        return consolidation_score(state, move)


@dataclass(frozen=True)
class MixingScorer:
    """Shuffle ordering favouring moves that leave the state more mixed.

    The resulting state's entropy and fragmentation are weighted together
    with three flags read from the state before the move: the source is a
    monochrome vial of two or more segments, the poured colour lands on a
    different colour, and the source holds three or more of that colour.
    """

    entropy_weight: float = 0.3
    fragmentation_weight: float = 0.2
    breaks_sorted_weight: float = 10.0
    mixes_colors_weight: float = 5.0
    distributes_color_weight: float = 5.0

    def __call__(self, state: GameState, move: Move) -> float:
        result = state.apply_move(move)
        source = state.vials[move.source_vial_index]
        target = state.vials[move.target_vial_index]
        color = source.get_top_color()

        breaks_sorted = len(source) > 1 and len(set(source.segments)) == 1
        mixes_colors = not target.is_empty() and target.get_top_color() != color
        distributes = sum(1 for segment in source.segments if segment == color) >= 3

        return (
            calculate_entropy(result) * self.entropy_weight
            + calculate_fragmentation(result) * self.fragmentation_weight
            + breaks_sorted * self.breaks_sorted_weight
            + mixes_colors * self.mixes_colors_weight
            + distributes * self.distributes_color_weight
        )


__all__ = ["ConsolidationScorer", "MixingScorer", "MoveScorer"]
