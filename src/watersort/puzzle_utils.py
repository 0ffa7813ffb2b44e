"""Heuristics and construction helpers over :class:`GameState`.

Everything here is a pure function: states passed in are never mutated and
new states are returned as clones.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from project_config import get_section

from .errors import InvalidConfigurationError
from .game_state import GameState, Move
from .seeded_random import SeededRandom
from .vial import Color, Vial

MoveScore = Callable[[GameState, Move], float]

DEFAULT_PALETTE: Tuple[str, ...] = tuple(
    get_section(
        "puzzle.palette",
        default=[
            "red", "blue", "green", "yellow", "purple", "orange",
            "cyan", "magenta", "lime", "pink", "brown", "teal",
        ],
    )
)


@dataclass(frozen=True)
class LevelEvaluation:
    """Quality metrics of a shuffled state together with its solution length."""

    difficulty: float
    entropy: float
    fragmentation: int
    solution_steps: int
    is_valid: bool


def count_top_segments_of_same_color(vial: Vial, color: Color) -> int:
    count = 0
    for segment in reversed(vial.segments):
        if segment != color:
            break
        count += 1
    return count


def color_vial_counts(state: GameState) -> Dict[Color, int]:
    """Map each colour to the number of distinct vials holding it."""

    counts: Dict[Color, int] = {}
    for vial in state.vials:
        for color in dict.fromkeys(vial.segments):
            counts[color] = counts.get(color, 0) + 1
    return counts


def calculate_entropy(state: GameState) -> float:
    """Relative disorder score; higher means more mixed.

    Each colour change inside a vial counts once plus a positional weight of
    ``0.5 * (capacity - i)`` for a change between positions ``i - 1`` and
    ``i``, so mixing near the bottom weighs more.  Colours spread over several
    vials add ``(vials - 1) * 2``.
    """

    entropy = 0.0
    for vial in state.vials:
        segments = vial.segments
        for i in range(1, len(segments)):
            if segments[i] != segments[i - 1]:
                entropy += 1 + 0.5 * (vial.capacity - i)
    for count in color_vial_counts(state).values():
        if count > 1:
            entropy += (count - 1) * 2
    return entropy


def calculate_fragmentation(state: GameState) -> int:
    return sum(count - 1 for count in color_vial_counts(state).values())


def would_complete_vial(state: GameState, move: Move) -> bool:
    """True when *move* empties its source or fills its target with one colour."""

    if not (0 <= move.source_vial_index < len(state.vials) and 0 <= move.target_vial_index < len(state.vials)):
        return False
    source = state.vials[move.source_vial_index]
    target = state.vials[move.target_vial_index]
    color = source.get_top_color()
    if color is None:
        return False
    if len(source) == move.colors_to_pour:
        return True
    if len(target) + move.colors_to_pour == target.capacity:
        return all(segment == color for segment in target.segments)
    return False


def consolidation_score(state: GameState, move: Move) -> float:
    """Default solver ordering: completions, then same-colour pours, then spread colours."""

    source = state.vials[move.source_vial_index]
    target = state.vials[move.target_vial_index]
    score = 0.0
    if would_complete_vial(state, move):
        score += 100
    color = source.get_top_color()
    if not target.is_empty() and color is not None and target.get_top_color() == color:
        score += 50
    if color is not None:
        occurrences = color_vial_counts(state).get(color, 0)
        if occurrences > 1:
            score += 20 * (occurrences - 1)
    return score


def prioritize_moves(moves: Sequence[Move], state: GameState, scorer: Optional[MoveScore] = None) -> List[Move]:
    """Order *moves* by descending score; ties keep their input order."""

    score = scorer or consolidation_score
    scored = [(score(state, move), move) for move in moves]
    scored.sort(key=lambda item: -item[0])
    return [move for _, move in scored]


def has_partial_vials(state: GameState) -> bool:
    return any(not vial.is_empty() and not vial.is_full() for vial in state.vials)


def has_sorted_vials(state: GameState) -> bool:
    """True when a non-empty vial is already complete."""

    return any(not vial.is_empty() and vial.is_complete() for vial in state.vials)


def evaluate_level(state: GameState, solution_path: Sequence[Move]) -> LevelEvaluation:
    entropy = calculate_entropy(state)
    fragmentation = calculate_fragmentation(state)
    steps = len(solution_path)
    difficulty = entropy * 0.4 + fragmentation * 0.4 + steps * 0.2
    return LevelEvaluation(
        difficulty=difficulty,
        entropy=entropy,
        fragmentation=fragmentation,
        solution_steps=steps,
        is_valid=not has_partial_vials(state) and not has_sorted_vials(state),
    )


def has_desirable_properties(state: GameState) -> bool:
    if has_sorted_vials(state) or has_partial_vials(state):
        return False
    return calculate_entropy(state) > state.color_count * 0.8


def create_initial_state(
    color_count: int,
    vial_height: int,
    empty_vial_count: int,
    *,
    palette: Sequence[Color] = DEFAULT_PALETTE,
) -> GameState:
    """Solved state: one full monochrome vial per colour plus empty vials."""

    if color_count < 1:
        raise InvalidConfigurationError(f"color_count must be positive, got {color_count}")
    if vial_height < 1:
        raise InvalidConfigurationError(f"vial_height must be positive, got {vial_height}")
    if empty_vial_count < 0:
        raise InvalidConfigurationError(f"empty_vial_count must not be negative, got {empty_vial_count}")
    if color_count > len(palette):
        raise InvalidConfigurationError(f"Not enough colors in palette. Max is {len(palette)}")
    vials = [Vial([palette[i]] * vial_height, vial_height) for i in range(color_count)]
    vials.extend(Vial([], vial_height) for _ in range(empty_vial_count))
    return GameState(vials, color_count, empty_vial_count)


def randomize_vials(state: GameState, rng: SeededRandom) -> GameState:
    """Shuffle every segment of the non-empty vials back into those same vials."""

    new_state = state.clone()
    filled = [vial for vial in new_state.vials if not vial.is_empty()]
    pool: List[Color] = []
    for vial in filled:
        pool.extend(vial.segments)
        vial.segments = []
    shuffled = rng.shuffle(pool)
    cursor = 0
    for vial in filled:
        take = min(vial.capacity, len(shuffled) - cursor)
        vial.segments = shuffled[cursor:cursor + take]
        cursor += take
    return new_state


def add_empty_vials(state: GameState, empty_vial_count: int) -> GameState:
    """Top up the state so that it holds ``empty_vial_count`` empty vials."""

    new_state = state.clone()
    current = sum(1 for vial in new_state.vials if vial.is_empty())
    if new_state.vials:
        capacity = new_state.vials[0].capacity
        new_state.vials.extend(Vial([], capacity) for _ in range(empty_vial_count - current))
    new_state.empty_vial_count = empty_vial_count
    new_state.total_vials = len(new_state.vials)
    return new_state


__all__ = [
    "DEFAULT_PALETTE",
    "LevelEvaluation",
    "MoveScore",
    "add_empty_vials",
    "calculate_entropy",
    "calculate_fragmentation",
    "color_vial_counts",
    "consolidation_score",
    "count_top_segments_of_same_color",
    "create_initial_state",
    "evaluate_level",
    "has_desirable_properties",
    "has_partial_vials",
    "has_sorted_vials",
    "prioritize_moves",
    "randomize_vials",
    "would_complete_vial",
]
