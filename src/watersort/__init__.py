"""Water sort puzzle core: state model, solver and level generators."""

from __future__ import annotations

from .errors import GenerationError, InvalidConfigurationError
from .game_state import GameState, Move, apply_move, get_available_moves, is_complete
from .level_generator import GeneratedLevel, generate_level
from .level_record import to_record
from .puzzle_solver import SolveResult, solve_puzzle
from .random_level_generator import generate_random_level
from .seeded_random import SeededRandom
from .vial import Vial

__all__ = [
    "GameState",
    "GeneratedLevel",
    "GenerationError",
    "InvalidConfigurationError",
    "Move",
    "SeededRandom",
    "SolveResult",
    "Vial",
    "apply_move",
    "generate_level",
    "generate_random_level",
    "get_available_moves",
    "is_complete",
    "solve_puzzle",
    "to_record",
]
