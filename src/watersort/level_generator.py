"""Reverse-construction level generator.

A level is built by walking backwards from the solved state.  Every step is
an *un-pour*: segments are lifted off one vial and placed onto another in a
way that the matching forward pour is exactly a move the solver would
enumerate on the resulting state.  Reversing the recorded steps therefore
yields a legal solution, so solvability holds without running the solver.

Generation runs ``Initializing -> ShuffleLoop -> PostProcessing -> Done`` and
retries with a perturbed seed when the final state fails the quality gate.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple, Union

from project_config import get_section

from .errors import GenerationError, InvalidConfigurationError
from .game_state import GameState, Move
from .puzzle_utils import (
    LevelEvaluation,
    calculate_entropy,
    create_initial_state,
    evaluate_level,
    has_desirable_properties,
    has_partial_vials,
)
from .scoring import MixingScorer, MoveScorer
from .seeded_random import SeededRandom

_LOGGER = logging.getLogger(__name__)

Seed = Union[int, str]

GENERATION_METHOD = "reverse-shuffle"

_SETTINGS: Dict[str, Any] = get_section("generator.reverse", default={})
DEFAULT_COLOR_COUNT = int(_SETTINGS.get("color_count", 5))
DEFAULT_VIAL_HEIGHT = int(_SETTINGS.get("vial_height", 4))
DEFAULT_EMPTY_VIALS = int(_SETTINGS.get("empty_vial_count", 2))
DEFAULT_SHUFFLE_MOVES = int(_SETTINGS.get("shuffle_moves", 60))
DEFAULT_MAX_ATTEMPTS = int(_SETTINGS.get("max_attempts", 8))
DEFAULT_SETTLE_BUDGET = int(_SETTINGS.get("settle_budget", 2000))

_TOP_CHOICES = 3


@dataclass(frozen=True)
class GeneratedLevel:
    """Generator output: the puzzle, how it was built and how to solve it."""

    initial_state: GameState
    shuffled_state: GameState
    generation_moves: List[Move]
    solution_moves: List[Move]
    evaluation: LevelEvaluation
    generation_method: str
    seed: Seed
    attempts: int = 1
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def vial_capacity(self) -> int:
        vials = self.shuffled_state.vials
        return vials[0].capacity if vials else 0


def derive_seed() -> int:
    """Seed for callers that did not supply one; recorded in the level metadata."""

    return int(time.time() * 1000) % 2147483647


def attempt_seed(seed: Seed, attempt: int) -> Seed:
    return seed if attempt == 0 else f"{seed}#{attempt}"


def get_reverse_moves(state: GameState) -> List[Move]:
    """Enumerate un-pours, row-major over vial pairs then ascending amount.

    Lifting ``k`` segments of colour ``c`` from vial ``a`` onto vial ``b`` is
    allowed when ``b`` has room, ``a``'s top run of ``c`` is at least ``k``,
    ``a`` is left empty or still topped by ``c``, and either ``b`` is empty,
    ``b``'s top is not ``c``, or ``a`` was full.  Under these conditions the
    forward pour ``b -> a`` moves exactly ``k`` segments.
    """

    moves: List[Move] = []
    vials = state.vials
    for a, source in enumerate(vials):
        if source.is_empty():
            continue
        color = source.get_top_color()
        run = source.top_run_length()
        for b, target in enumerate(vials):
            if a == b:
                continue
            if not (target.is_empty() or target.get_top_color() != color or source.is_full()):
                continue
            for amount in range(1, min(run, target.free_space()) + 1):
                if amount < run or amount == len(source):
                    moves.append(Move(a, b, amount))
    return moves


def _emptiable_count(state: GameState) -> int:
    """Vials that are empty or hold a single run; only these can still be emptied."""

    return sum(1 for vial in state.vials if vial.top_run_length() == len(vial))


def _count_sorted(state: GameState) -> int:
    return sum(1 for vial in state.vials if not vial.is_empty() and vial.is_complete())


def _count_partial(state: GameState) -> int:
    return sum(1 for vial in state.vials if not vial.is_empty() and not vial.is_full())


def _settle_preference(state: GameState, move: Move) -> int:
    target = state.vials[move.target_vial_index]
    if target.is_empty():
        return 0
    if target.get_top_color() == state.vials[move.source_vial_index].get_top_color():
        return 1
    if move.colors_to_pour == 1:
        return 2
    return 3


def _is_settled(state: GameState) -> bool:
    return not state.is_complete() and has_desirable_properties(state)


def settle(state: GameState, budget: int = DEFAULT_SETTLE_BUDGET) -> Optional[List[Move]]:
    """Find un-pours leading *state* to a puzzle without partial or sorted vials.

    Successors keeping fewer than ``state.empty_vial_count`` empty or
    single-run vials are skipped: un-pours never empty a mixed vial, so such
    states cannot end with that many empty vials.

    Best-first search ordered by partial vials, then pre-sorted vials, then
    descending entropy.  Ties prefer pouring into an empty vial, then onto a
    vial with the same top colour, then single segments.  Returns the extra
    moves, ``[]`` when *state* already qualifies, or ``None`` when *budget*
    expansions are spent.
    """

    if _is_settled(state):
        return []
    counter = itertools.count()
    heap: List[Tuple[int, int, float, int, int, GameState, List[Move]]] = []

    def _push(node: GameState, path: List[Move], preference: int) -> None:
        priority = (_count_partial(node), _count_sorted(node), -calculate_entropy(node), preference)
        heapq.heappush(heap, (*priority, next(counter), node, path))

    reserve = state.empty_vial_count
    _push(state, [], 0)
    seen: Set[str] = {state.get_state_hash()}
    expansions = 0
    while heap and expansions < budget:
        *_, node, path = heapq.heappop(heap)
        expansions += 1
        for move in get_reverse_moves(node):
            successor = node.apply_move(move)
            key = successor.get_state_hash()
            if key in seen:
                continue
            seen.add(key)
            if _emptiable_count(successor) < reserve:
                continue
            extended = path + [move]
            if _is_settled(successor):
                return extended
            _push(successor, extended, _settle_preference(node, move))
    return None


def _select_move(candidates: List[Move], state: GameState, scorer: MoveScorer, rng: SeededRandom) -> Move:
    scored = [(scorer(state, move), move) for move in candidates]
    scored.sort(key=lambda item: -item[0])
    index = rng.next_int(0, min(_TOP_CHOICES, len(scored)))
    return scored[index][1]


def _check_capacity(state: GameState) -> None:
    for index, vial in enumerate(state.vials):
        if len(vial) > vial.capacity:
            raise GenerationError(
                f"Vial {index} holds {len(vial)} segments but its capacity is {vial.capacity}"
            )


def _validate_parameters(color_count: int, vial_height: int, empty_vial_count: int, target_shuffle_moves: int) -> None:
    if color_count < 2:
        raise InvalidConfigurationError("At least two colors are needed to build a mixed puzzle")
    if vial_height < 2:
        raise InvalidConfigurationError("vial_height must be at least 2 to mix colors inside a vial")
    if empty_vial_count < 1:
        raise InvalidConfigurationError("At least one empty vial is needed to shuffle a solved state")
    if target_shuffle_moves < 0:
        raise InvalidConfigurationError(f"target_shuffle_moves must not be negative, got {target_shuffle_moves}")


def _build_attempt(
    initial: GameState,
    target_shuffle_moves: int,
    seed: Seed,
    scorer: MoveScorer,
    settle_budget: int,
) -> Optional[Tuple[GameState, List[Move]]]:
    rng = SeededRandom(seed)
    state = initial.clone()
    moves: List[Move] = []
    visited: Set[str] = {state.get_state_hash()}
    reserve = initial.empty_vial_count

    while len(moves) < target_shuffle_moves:
        candidates = []
        for move in get_reverse_moves(state):
            result = state.apply_move(move)
            if result.get_state_hash() not in visited and _emptiable_count(result) >= reserve:
                candidates.append(move)
        if not candidates:
            _LOGGER.info(
                "Shuffle stopped after %d of %d target moves: no admissible reverse move",
                len(moves),
                target_shuffle_moves,
            )
            break
        move = _select_move(candidates, state, scorer, rng)
        state = state.apply_move(move)
        moves.append(move)
        visited.add(state.get_state_hash())

    extra = settle(state, settle_budget)
    if extra is None:
        _LOGGER.debug("Settling did not converge within %d expansions", settle_budget)
        return None
    for move in extra:
        state = state.apply_move(move)
    moves.extend(extra)
    _check_capacity(state)
    return state, moves


def generate_level(
    color_count: int = DEFAULT_COLOR_COUNT,
    vial_height: int = DEFAULT_VIAL_HEIGHT,
    empty_vial_count: int = DEFAULT_EMPTY_VIALS,
    target_shuffle_moves: int = DEFAULT_SHUFFLE_MOVES,
    seed: Optional[Seed] = None,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    settle_budget: int = DEFAULT_SETTLE_BUDGET,
    scorer: Optional[MoveScorer] = None,
) -> GeneratedLevel:
    """Generate a solvable level by shuffling a solved state backwards.

    Raises :class:`InvalidConfigurationError` for impossible parameters and
    :class:`GenerationError` when ``max_attempts`` seeds all fail the quality
    gate.
    """

    _validate_parameters(color_count, vial_height, empty_vial_count, target_shuffle_moves)
    initial = create_initial_state(color_count, vial_height, empty_vial_count)
    base_seed: Seed = derive_seed() if seed is None else seed
    scorer = scorer or MixingScorer()

    for attempt in range(max(1, max_attempts)):
        current_seed = attempt_seed(base_seed, attempt)
        built = _build_attempt(initial, target_shuffle_moves, current_seed, scorer, settle_budget)
        if built is None:
            _LOGGER.info("Attempt %d with seed %r did not settle; retrying", attempt + 1, current_seed)
            continue
        shuffled, moves = built
        if shuffled.is_complete() or not has_desirable_properties(shuffled) or has_partial_vials(shuffled):
            _LOGGER.info("Attempt %d with seed %r failed the quality gate; retrying", attempt + 1, current_seed)
            continue
        solution = [move.reversed() for move in reversed(moves)]
        return GeneratedLevel(
            initial_state=initial.clone(),
            shuffled_state=shuffled,
            generation_moves=moves,
            solution_moves=solution,
            evaluation=evaluate_level(shuffled, solution),
            generation_method=GENERATION_METHOD,
            seed=base_seed,
            attempts=attempt + 1,
        )

    raise GenerationError(
        f"Could not generate a valid puzzle after {max_attempts} attempts",
        seed=base_seed,
        attempts=max_attempts,
    )


def port_generate(params: Mapping[str, Any], *, seed: Optional[Seed] = None) -> GeneratedLevel:
    """Entry point used by :mod:`ports.generator_port`."""

    return generate_level(
        color_count=int(params.get("color_count", DEFAULT_COLOR_COUNT)),
        vial_height=int(params.get("vial_height", DEFAULT_VIAL_HEIGHT)),
        empty_vial_count=int(params.get("empty_vial_count", DEFAULT_EMPTY_VIALS)),
        target_shuffle_moves=int(params.get("shuffle_moves", DEFAULT_SHUFFLE_MOVES)),
        seed=seed,
        max_attempts=int(params.get("max_attempts", DEFAULT_MAX_ATTEMPTS)),
        settle_budget=int(params.get("settle_budget", DEFAULT_SETTLE_BUDGET)),
    )


__all__ = [
    "GENERATION_METHOD",
    "GeneratedLevel",
    "attempt_seed",
    "derive_seed",
    "generate_level",
    "get_reverse_moves",
    "port_generate",
    "settle",
]
