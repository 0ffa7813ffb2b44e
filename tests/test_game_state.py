from __future__ import annotations

import logging

import pytest

from watersort.game_state import GameState, Move, get_available_moves, is_complete


def _state(segments, capacity):
    return GameState.from_segments(segments, capacity)


def test_available_moves_are_row_major():
    state = _state([["red", "blue"], ["blue"], []], 3)
    assert get_available_moves(state) == [
        Move(0, 1, 1),
        Move(0, 2, 1),
        Move(1, 0, 1),
        Move(1, 2, 1),
    ]


def test_pour_amount_is_limited_by_target_space():
    state = _state([["blue", "red", "red", "red"], ["red", "red"], []], 4)
    moves = state.get_available_moves()
    assert Move(0, 1, 2) in moves
    assert Move(0, 2, 3) in moves


def test_apply_move_returns_new_state():
    state = _state([["red", "blue"], ["blue"], []], 3)
    after = state.apply_move(Move(0, 1, 1))
    assert after.to_segments() == [["red"], ["blue", "blue"], []]
    assert state.to_segments() == [["red", "blue"], ["blue"], []]
    assert after.color_count == state.color_count
    assert after.empty_vial_count == state.empty_vial_count


@pytest.mark.parametrize(
    "move",
    [
        Move(0, 0, 1),
        Move(2, 0, 1),
        Move(0, 5, 1),
        Move(0, 1, 0),
        Move(0, 1, 2),
    ],
)
def test_malformed_moves_leave_state_untouched(move, caplog):
    state = _state([["red", "blue"], ["blue"], []], 3)
    with caplog.at_level(logging.WARNING, logger="watersort.game_state"):
        after = state.apply_move(move)
    assert after.get_state_hash() == state.get_state_hash()
    assert after is not state
    assert "Ignoring malformed move" in caplog.text


def test_overflowing_move_is_ignored():
    state = _state([["red", "red"], ["red"]], 2)
    after = state.apply_move(Move(0, 1, 2))
    assert after.to_segments() == [["red", "red"], ["red"]]


def test_completion_and_hash():
    solved = _state([["red", "red"], ["blue", "blue"], []], 2)
    assert is_complete(solved)
    assert solved.get_state_hash() == "red,red|blue,blue|"
    assert not is_complete(_state([["red"], ["red"]], 2))


def test_from_segments_derives_counts():
    state = _state([["red", "blue"], ["blue", "red"], [], []], 2)
    assert state.color_count == 2
    assert state.empty_vial_count == 2
    assert state.total_vials == 4


def test_move_payload_round_trip_and_reverse():
    move = Move(2, 0, 3)
    assert move.to_payload() == {"source": 2, "target": 0, "amount": 3}
    assert Move.from_payload(move.to_payload()) == move
    assert move.reversed() == Move(0, 2, 3)
    with pytest.raises(ValueError):
        Move.from_payload({"source": 1, "target": 2})


def test_hash_is_stable_and_order_sensitive():
    state = _state([["red", "blue", "green"], ["yellow", "purple"]], 3)
    assert state.get_state_hash() == "red,blue,green|yellow,purple"
    assert state.get_state_hash() == state.get_state_hash()
    swapped = _state([["yellow", "purple"], ["red", "blue", "green"]], 3)
    assert swapped.get_state_hash() != state.get_state_hash()
