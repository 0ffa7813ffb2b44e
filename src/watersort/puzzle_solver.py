"""Breadth-first solver with pruning and explicit time/step budgets.

The pruning rules collapse symmetric pours into empty vials and suppress
immediate oscillation.  They keep the search tractable at the cost of
completeness: in rare configurations a solvable state is reported as
exhausted because its only solutions run through a pruned move.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Set, Tuple

from project_config import get_int

from .game_state import GameState, Move
from .puzzle_utils import MoveScore, prioritize_moves, would_complete_vial

_LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = get_int("solver.timeout_ms", 5000, env_key="PUZZLE_SOLVER_TIMEOUT_MS")
DEFAULT_MAX_STEPS = get_int("solver.max_steps", 10000, env_key="PUZZLE_SOLVER_MAX_STEPS")

REASON_SOLVED = "solved"
REASON_TIMEOUT = "timeout"
REASON_STEP_BUDGET = "step_budget"
REASON_EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class SolveResult:
    """Outcome of :func:`solve_puzzle`.

    ``timed_out`` is true for a wall-clock timeout and also when the step
    budget ran out; ``reason`` separates the two and marks a true exhaustion
    of the reachable, unpruned space as ``"exhausted"``.
    """

    solved: bool
    path: Optional[List[Move]]
    timed_out: bool
    states_explored: int = 0
    states_pruned: int = 0
    reason: str = REASON_EXHAUSTED
    elapsed_ms: float = field(default=0.0, compare=False)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "solved": self.solved,
            "path": None if self.path is None else [move.to_payload() for move in self.path],
            "timedOut": self.timed_out,
            "statesExplored": self.states_explored,
            "statesPruned": self.states_pruned,
            "reason": self.reason,
        }


def _is_pruned(state: GameState, move: Move, last_move: Optional[Move]) -> bool:
    source = state.vials[move.source_vial_index]
    target = state.vials[move.target_vial_index]
    if source.is_empty():
        return True
    if target.is_empty() and any(vial.is_empty() for vial in state.vials[: move.target_vial_index]):
        return True
    if last_move is None:
        return False
    if move.source_vial_index == last_move.target_vial_index:
        if move.target_vial_index == last_move.source_vial_index:
            return True
        if len(source) > 1 and not would_complete_vial(state, move):
            return True
    return False


def solve_puzzle(
    state: GameState,
    timeout_ms: Optional[int] = None,
    max_steps: Optional[int] = None,
    *,
    scorer: Optional[MoveScore] = None,
    clock: Callable[[], float] = time.monotonic,
) -> SolveResult:
    """Search for a move sequence turning *state* into a complete state.

    The wall clock is polled once per dequeued state.  Successors are queued
    in :func:`prioritize_moves` order, which decides which solution surfaces
    first but not whether one is found.
    """

    timeout_ms = DEFAULT_TIMEOUT_MS if timeout_ms is None else timeout_ms
    max_steps = DEFAULT_MAX_STEPS if max_steps is None else max_steps

    start = clock()
    queue: Deque[Tuple[GameState, List[Move], Optional[Move]]] = deque([(state, [], None)])
    visited: Set[str] = {state.get_state_hash()}
    explored = 0
    pruned = 0

    def _elapsed_ms() -> float:
        return (clock() - start) * 1000.0

    while queue and explored < max_steps:
        if _elapsed_ms() > timeout_ms:
            _LOGGER.debug("Solver timed out after %d states (pruned %d)", explored, pruned)
            return SolveResult(False, None, True, explored, pruned, REASON_TIMEOUT, _elapsed_ms())

        current, path, last_move = queue.popleft()
        explored += 1

        if current.is_complete():
            _LOGGER.debug("Solution of %d moves found after %d states (pruned %d)", len(path), explored, pruned)
            return SolveResult(True, path, False, explored, pruned, REASON_SOLVED, _elapsed_ms())

        candidates: List[Move] = []
        for move in current.get_available_moves():
            if _is_pruned(current, move, last_move):
                pruned += 1
                continue
            candidates.append(move)

        for move in prioritize_moves(candidates, current, scorer):
            successor = current.apply_move(move)
            key = successor.get_state_hash()
            if key in visited:
                continue
            visited.add(key)
            queue.append((successor, path + [move], move))

    timed_out = explored >= max_steps
    reason = REASON_STEP_BUDGET if timed_out else REASON_EXHAUSTED
    _LOGGER.debug("Search stopped (%s) after %d states (pruned %d)", reason, explored, pruned)
    return SolveResult(False, None, timed_out, explored, pruned, reason, _elapsed_ms())


def port_solve(state: GameState, options: Optional[Mapping[str, Any]] = None) -> SolveResult:
    """Entry point used by :mod:`ports.solver_port`."""

    options = dict(options or {})
    return solve_puzzle(
        state,
        timeout_ms=options.get("timeout_ms"),
        max_steps=options.get("max_steps"),
    )


__all__ = [
    "DEFAULT_MAX_STEPS",
    "DEFAULT_TIMEOUT_MS",
    "SolveResult",
    "port_solve",
    "solve_puzzle",
]
