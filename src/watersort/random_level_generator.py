"""Randomized level generator verified by the BFS solver.

Segments of a solved state are shuffled at random and the solver decides
whether the result is playable with one, two, ... empty vials.  Several
sub-seeds are tried and the most difficult accepted candidate is kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from project_config import get_section

from .game_state import GameState, Move
from .level_generator import GeneratedLevel, Seed, derive_seed
from .puzzle_solver import solve_puzzle
from .puzzle_utils import (
    LevelEvaluation,
    add_empty_vials,
    create_initial_state,
    evaluate_level,
    has_desirable_properties,
    randomize_vials,
)
from .seeded_random import SeededRandom
from .vial import Vial

_LOGGER = logging.getLogger(__name__)

GENERATION_METHOD = "random-with-bfs-solver"

_SETTINGS: Dict[str, Any] = get_section("generator.random", default={})
DEFAULT_COLOR_COUNT = int(_SETTINGS.get("color_count", 5))
DEFAULT_VIAL_HEIGHT = int(_SETTINGS.get("vial_height", 4))
DEFAULT_MAX_EMPTY_VIALS = int(_SETTINGS.get("max_empty_vials", 3))
DEFAULT_ATTEMPTS = int(_SETTINGS.get("attempts", 10))
DEFAULT_TIMEOUT_MS = int(_SETTINGS.get("timeout_ms", 5000))
DEFAULT_MAX_STEPS = int(_SETTINGS.get("max_steps", 50000))


@dataclass(frozen=True)
class Candidate:
    """Result of one sub-seed: the last state tried and, when solved, its solution."""

    seed: Seed
    state: GameState
    solution_moves: Optional[List[Move]]
    empty_vials: int
    evaluation: Optional[LevelEvaluation]

    @property
    def accepted(self) -> bool:
        return (
            self.solution_moves is not None
            and self.evaluation is not None
            and self.evaluation.is_valid
            and has_desirable_properties(self.state)
        )


def generate_random_level_candidate(
    seed: Seed,
    color_count: int,
    vial_height: int,
    max_empty_vials: int = DEFAULT_MAX_EMPTY_VIALS,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> Candidate:
    rng = SeededRandom(seed)
    randomized = randomize_vials(create_initial_state(color_count, vial_height, 0), rng)

    state = randomized
    empty_vials = 0
    for empty_vials in range(1, max(1, max_empty_vials) + 1):
        state = add_empty_vials(randomized, empty_vials)
        result = solve_puzzle(state, timeout_ms, max_steps)
        if result.solved and result.path is not None:
            _LOGGER.debug("Seed %r solved with %d empty vials in %d moves", seed, empty_vials, len(result.path))
            return Candidate(seed, state, result.path, empty_vials, evaluate_level(state, result.path))
        _LOGGER.debug("Seed %r unsolved with %d empty vials (%s)", seed, empty_vials, result.reason)
    return Candidate(seed, state, None, empty_vials, None)


def sorted_initial_state(state: GameState) -> GameState:
    """Solved counterpart of *state*: one full vial per colour in order of first appearance."""

    capacity = state.vials[0].capacity if state.vials else 0
    colors = list(dict.fromkeys(segment for vial in state.vials for segment in vial.segments))
    vials = [Vial([color] * capacity, capacity) for color in colors]
    vials.extend(Vial([], capacity) for _ in range(state.empty_vial_count))
    return GameState(vials, len(colors), state.empty_vial_count)


def generate_random_level(
    seed: Optional[Seed] = None,
    color_count: int = DEFAULT_COLOR_COUNT,
    vial_height: int = DEFAULT_VIAL_HEIGHT,
    max_empty_vials: int = DEFAULT_MAX_EMPTY_VIALS,
    attempts: int = DEFAULT_ATTEMPTS,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    *,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> Optional[GeneratedLevel]:
    """Return the most difficult accepted candidate, or ``None`` if none qualified."""

    base_seed: Seed = derive_seed() if seed is None else seed
    best: Optional[Candidate] = None
    accepted = 0
    for index in range(attempts):
        candidate = generate_random_level_candidate(
            f"{base_seed}-{index}", color_count, vial_height, max_empty_vials, timeout_ms, max_steps
        )
        if not candidate.accepted:
            continue
        accepted += 1
        if best is None or candidate.evaluation.difficulty > best.evaluation.difficulty:
            best = candidate

    _LOGGER.info("Random generation with seed %r accepted %d of %d candidates", base_seed, accepted, attempts)
    if best is None:
        return None
    return GeneratedLevel(
        initial_state=sorted_initial_state(best.state),
        shuffled_state=best.state,
        generation_moves=[],
        solution_moves=list(best.solution_moves),
        evaluation=best.evaluation,
        generation_method=GENERATION_METHOD,
        seed=base_seed,
        attempts=attempts,
        extras={"candidateSeed": best.seed, "acceptedCandidates": accepted},
    )


def port_generate(params: Mapping[str, Any], *, seed: Optional[Seed] = None) -> Optional[GeneratedLevel]:
    """Entry point used by :mod:`ports.generator_port`."""

    return generate_random_level(
        seed=seed,
        color_count=int(params.get("color_count", DEFAULT_COLOR_COUNT)),
        vial_height=int(params.get("vial_height", DEFAULT_VIAL_HEIGHT)),
        max_empty_vials=int(params.get("max_empty_vials", DEFAULT_MAX_EMPTY_VIALS)),
        attempts=int(params.get("attempts", DEFAULT_ATTEMPTS)),
        timeout_ms=int(params.get("timeout_ms", DEFAULT_TIMEOUT_MS)),
        max_steps=int(params.get("max_steps", DEFAULT_MAX_STEPS)),
    )


__all__ = [
    "Candidate",
    "GENERATION_METHOD",
    "generate_random_level",
    "generate_random_level_candidate",
    "port_generate",
    "sorted_initial_state",
]
