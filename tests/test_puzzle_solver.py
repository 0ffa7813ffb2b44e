from __future__ import annotations

import itertools

from watersort.game_state import GameState, Move
from watersort.puzzle_solver import port_solve, solve_puzzle


def _state(segments, capacity):
    return GameState.from_segments(segments, capacity)


def test_solves_small_puzzle_with_shortest_path():
    state = _state([["red", "blue"], ["red"], ["blue"]], 2)
    result = solve_puzzle(state, timeout_ms=1000, max_steps=100)
    assert result.solved
    assert not result.timed_out
    assert result.reason == "solved"
    assert result.path == [Move(0, 2, 1), Move(0, 1, 1)]


def test_solution_replays_to_complete_state(scenario_record):
    state = _state([vial["segments"] for vial in scenario_record["shuffledState"]["vials"]], 4)
    result = solve_puzzle(state, timeout_ms=5000, max_steps=10000)
    assert result.solved
    current = state
    for move in result.path:
        assert move in current.get_available_moves()
        current = current.apply_move(move)
    assert current.is_complete()


def test_already_solved_state():
    result = solve_puzzle(_state([["red", "red"], []], 2), timeout_ms=1000, max_steps=10)
    assert result.solved
    assert result.path == []
    assert result.states_explored == 1


def test_exhausted_search_is_not_a_timeout():
    state = _state([["red", "blue"], ["blue", "red"]], 2)
    result = solve_puzzle(state, timeout_ms=1000, max_steps=100)
    assert not result.solved
    assert result.path is None
    assert not result.timed_out
    assert result.reason == "exhausted"


def test_step_budget_reports_timed_out():
    state = _state([["red", "blue"], ["red"], ["blue"]], 2)
    result = solve_puzzle(state, timeout_ms=1000, max_steps=1)
    assert not result.solved
    assert result.timed_out
    assert result.reason == "step_budget"
    assert result.states_explored == 1


def test_wall_clock_timeout():
    ticks = itertools.count()
    state = _state([["red", "blue"], ["red"], ["blue"]], 2)
    result = solve_puzzle(state, timeout_ms=0, max_steps=100, clock=lambda: float(next(ticks)))
    assert not result.solved
    assert result.timed_out
    assert result.reason == "timeout"
    assert result.states_explored == 0


def test_pruning_is_counted():
    state = _state([["red", "blue"], ["blue", "red"], [], []], 2)
    result = solve_puzzle(state, timeout_ms=5000, max_steps=1000)
    assert result.solved
    assert result.states_pruned > 0


def test_payload_and_port_entry():
    state = _state([["red", "blue"], ["red"], ["blue"]], 2)
    payload = port_solve(state, {"timeout_ms": 1000, "max_steps": 100}).to_payload()
    assert payload["solved"] is True
    assert payload["path"] == [
        {"source": 0, "target": 2, "amount": 1},
        {"source": 0, "target": 1, "amount": 1},
    ]
    assert payload["timedOut"] is False
    assert payload["reason"] == "solved"


def test_single_pair_of_colours_cannot_fill_capacity_two():
    # One red and one blue segment never make a full monochrome vial.
    state = _state([["red", "blue"], [], []], 2)
    result = solve_puzzle(state, timeout_ms=5000, max_steps=10000)
    assert not result.solved
    assert result.reason == "exhausted"
    assert not result.timed_out


def test_empty_state_is_solved_immediately():
    state = GameState([], 0, 0)
    assert state.is_complete()
    result = solve_puzzle(state, timeout_ms=1000, max_steps=10)
    assert result.solved
    assert result.path == []
