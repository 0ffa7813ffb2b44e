"""Facade dispatching puzzle solving to the configured implementation."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

from orchestrator.router import ResolvedModule, resolve
from watersort.game_state import GameState
from watersort.puzzle_solver import SolveResult

from ._utils import build_env


def solve(
    state: GameState,
    *,
    options: Optional[Mapping[str, Any]] = None,
    profile: str = "dev",
    env: Optional[Mapping[str, str]] = None,
) -> Tuple[SolveResult, ResolvedModule]:
    """Solve *state* with the solver selected for *profile*."""

    env_map = build_env(env)
    resolved = resolve("solver", profile, env_map)
    module = resolved.load()

    handler = getattr(module, "port_solve", None)
    if handler is None:
        raise AttributeError(f"Solver implementation '{resolved.module_name}' does not expose 'port_solve'")

    return handler(state, options), resolved


__all__ = ["solve"]
