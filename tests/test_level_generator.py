from __future__ import annotations

import logging
from collections import Counter

import pytest

from watersort.errors import GenerationError, InvalidConfigurationError
from watersort.game_state import GameState, Move
from watersort.level_generator import attempt_seed, generate_level, get_reverse_moves, settle
from watersort.level_record import to_record
from watersort.puzzle_solver import solve_puzzle
from watersort.puzzle_utils import create_initial_state, has_desirable_properties


def _replay(state: GameState, moves):
    for move in moves:
        assert move in state.get_available_moves()
        state = state.apply_move(move)
    return state


def test_reverse_moves_from_solved_state():
    state = create_initial_state(2, 2, 1, palette=["red", "blue"])
    assert get_reverse_moves(state) == [
        Move(0, 2, 1),
        Move(0, 2, 2),
        Move(1, 2, 1),
        Move(1, 2, 2),
    ]


def test_reverse_moves_respect_forward_pour_amount():
    state = GameState.from_segments([["red"], ["blue", "blue"], ["red"]], 2)
    moves = get_reverse_moves(state)
    # Pouring back 2 -> 0 would move two segments, not one.
    assert Move(0, 2, 1) not in moves
    assert Move(0, 1, 1) not in moves


def test_every_reverse_move_undoes_to_an_available_move():
    state = GameState.from_segments([["red", "blue", "blue"], ["blue", "red"], ["red"], []], 3)
    for move in get_reverse_moves(state):
        after = state.apply_move(move)
        assert move.reversed() in after.get_available_moves()
        assert after.apply_move(move.reversed()).get_state_hash() == state.get_state_hash()


def test_settle_reaches_a_mixed_full_state():
    state = create_initial_state(2, 4, 1)
    extra = settle(state, 2000)
    assert extra
    for move in extra:
        state = state.apply_move(move)
    assert has_desirable_properties(state)
    assert sum(1 for vial in state.vials if vial.is_empty()) == 1


def test_two_colours_one_empty_vial():
    level = generate_level(2, 4, 1, 10, seed="two-colours")
    shuffled = level.shuffled_state
    assert shuffled.total_vials == 3
    assert sum(1 for vial in shuffled.vials if vial.is_empty()) == 1
    assert all(vial.is_empty() or vial.is_full() for vial in shuffled.vials)
    assert not any(not vial.is_empty() and vial.is_complete() for vial in shuffled.vials)
    assert _replay(shuffled, level.solution_moves).is_complete()


def test_generated_level_is_solvable_and_conserves_colours():
    level = generate_level(3, 3, 2, 15, seed="alpha")
    initial, shuffled = level.initial_state, level.shuffled_state
    assert initial.is_complete()
    assert not shuffled.is_complete()
    assert all(len(vial) <= vial.capacity for vial in shuffled.vials)
    totals = Counter(segment for vial in shuffled.vials for segment in vial.segments)
    assert set(totals.values()) == {3}
    assert totals == Counter(segment for vial in initial.vials for segment in vial.segments)
    assert level.solution_moves == [move.reversed() for move in reversed(level.generation_moves)]
    assert _replay(shuffled, level.solution_moves).is_complete()
    assert level.evaluation.is_valid
    assert level.evaluation.solution_steps == len(level.solution_moves)


def test_generation_replays_from_initial_state():
    level = generate_level(3, 3, 2, 15, seed="replay")
    state = level.initial_state
    for move in level.generation_moves:
        assert move in get_reverse_moves(state)
        state = state.apply_move(move)
    assert state.get_state_hash() == level.shuffled_state.get_state_hash()


def test_same_seed_same_level():
    first = to_record(generate_level(3, 3, 2, 15, seed=1234))
    second = to_record(generate_level(3, 3, 2, 15, seed=1234))
    assert first == second
    assert first["metadata"]["seed"] == 1234


def test_unseeded_generation_records_its_seed():
    level = generate_level(2, 4, 1, 5)
    assert isinstance(level.seed, int)


@pytest.mark.parametrize(
    "args",
    [
        (1, 4, 1, 10),
        (3, 1, 1, 10),
        (3, 4, 0, 10),
        (3, 4, 1, -1),
        (13, 4, 2, 10),
    ],
)
def test_invalid_parameters(args):
    with pytest.raises(InvalidConfigurationError):
        generate_level(*args, seed=1)


def test_exhausted_attempts_raise_generation_error():
    with pytest.raises(GenerationError) as excinfo:
        generate_level(2, 4, 1, 0, seed=7, max_attempts=2, settle_budget=0)
    assert excinfo.value.attempts == 2
    assert excinfo.value.seed == 7


def test_attempt_seed_perturbation():
    assert attempt_seed(42, 0) == 42
    assert attempt_seed(42, 2) == "42#2"
    assert attempt_seed("abc", 1) == "abc#1"


_SEEDS = [f"seed-{index}" for index in range(10)]


@pytest.mark.parametrize("config", [(2, 4, 1, 10), (5, 4, 2, 60), (10, 4, 2, 100)])
@pytest.mark.parametrize("seed", _SEEDS)
def test_levels_across_seeds_and_sizes(seed, config):
    color_count, vial_height, empty_vial_count, shuffle_moves = config
    level = generate_level(*config, seed=seed)
    shuffled = level.shuffled_state

    assert _replay(shuffled, level.solution_moves).is_complete()
    totals = Counter(segment for vial in shuffled.vials for segment in vial.segments)
    assert len(totals) == color_count
    assert set(totals.values()) == {vial_height}
    assert all(len(vial) <= vial_height for vial in shuffled.vials)
    assert has_desirable_properties(shuffled)
    assert sum(1 for vial in shuffled.vials if vial.is_empty()) == empty_vial_count
    assert to_record(generate_level(*config, seed=seed)) == to_record(level)


@pytest.mark.parametrize("config", [(2, 4, 1, 10), (5, 4, 2, 60)])
@pytest.mark.parametrize("seed", _SEEDS)
def test_bfs_solves_generated_levels(seed, config):
    level = generate_level(*config, seed=seed)
    result = solve_puzzle(level.shuffled_state, 5000, 20000)
    assert result.solved, result.reason
    assert _replay(level.shuffled_state, result.path).is_complete()


def test_shuffle_stop_is_reported_with_its_target(caplog):
    with caplog.at_level(logging.INFO, logger="watersort.level_generator"):
        level = generate_level(2, 4, 1, 200, seed="short-shuffle")
    assert len(level.generation_moves) < 200
    assert "of 200 target moves" in caplog.text
