from __future__ import annotations

import pytest

from orchestrator.router import RouterError, resolve
from ports import generator_port, solver_port
from watersort.game_state import GameState


def test_config_defaults():
    resolved = resolve("generator", "dev", env={})
    assert resolved.impl_id == "reverse"
    assert resolved.module_name == "watersort.level_generator"
    assert resolved.decision_source == "config"
    assert not resolved.fallback_used


def test_environment_overrides_config():
    resolved = resolve("generator", "dev", env={"PUZZLE_GENERATOR_IMPL": "random"})
    assert resolved.impl_id == "random"
    assert resolved.decision_source == "env"


def test_cli_overrides_environment():
    env = {"PUZZLE_GENERATOR_IMPL": "reverse", "CLI_PUZZLE_GENERATOR_IMPL": "Random"}
    resolved = resolve("generator", "prod", env=env)
    assert resolved.impl_id == "random"
    assert resolved.decision_source == "cli"


def test_unknown_implementation_falls_back():
    resolved = resolve("solver", "ci", env={"PUZZLE_SOLVER_IMPL": "astar"})
    assert resolved.impl_id == "bfs"
    assert resolved.fallback_used
    assert resolved.decision_source == "fallback"


def test_unsupported_role():
    with pytest.raises(RouterError):
        resolve("printer", "dev", env={})


def test_resolved_modules_expose_port_entry_points():
    assert hasattr(resolve("generator", "dev", env={}).load(), "port_generate")
    assert hasattr(resolve("generator", "dev", env={"PUZZLE_GENERATOR_IMPL": "random"}).load(), "port_generate")
    assert hasattr(resolve("solver", "dev", env={}).load(), "port_solve")


def test_generator_port_applies_overrides():
    params = {"color_count": 2, "vial_height": 4, "empty_vial_count": 1, "shuffle_moves": 8}
    level, resolved = generator_port.generate(params, seed="port", env={"PUZZLE_GENERATOR_IMPL": "reverse"})
    assert resolved.impl_id == "reverse"
    assert level is not None
    assert level.shuffled_state.total_vials == 3
    assert level.seed == "port"


def test_solver_port():
    state = GameState.from_segments([["red", "blue"], ["red"], ["blue"]], 2)
    result, resolved = solver_port.solve(state, options={"timeout_ms": 1000, "max_steps": 100}, env={})
    assert resolved.impl_id == "bfs"
    assert result.solved
