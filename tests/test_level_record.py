from __future__ import annotations

import json

import pytest

from watersort.game_state import Move
from watersort.level_generator import generate_level
from watersort.level_record import (
    moves_from_payload,
    record_capacity,
    record_moves,
    record_seed,
    state_from_payload,
    states_from_record,
    to_record,
)


def test_record_layout():
    level = generate_level(2, 4, 1, 10, seed="layout")
    record = to_record(level)
    assert set(record) == {"initialState", "shuffledState", "generationMoves", "solutionMoves", "metadata"}
    assert record["initialState"]["colorCount"] == 2
    assert record["initialState"]["emptyVialCount"] == 1
    assert "colorCount" not in record["shuffledState"]
    metadata = record["metadata"]
    assert metadata["vialCapacity"] == 4
    assert metadata["totalVials"] == 3
    assert metadata["estimatedSolutionSteps"] == len(record["solutionMoves"])
    assert metadata["generationMethod"] == "reverse-shuffle"
    assert metadata["seed"] == "layout"
    json.dumps(record)


def test_states_from_record(scenario_record):
    initial, shuffled = states_from_record(scenario_record)
    assert initial.to_segments()[0] == ["red"] * 4
    assert shuffled.to_segments()[1] == ["blue", "blue", "red", "red"]
    assert shuffled.color_count == 2
    assert shuffled.empty_vial_count == 1
    assert all(vial.capacity == 4 for vial in shuffled.vials)


def test_record_helpers(scenario_record):
    assert record_capacity(scenario_record) == 4
    assert record_seed(scenario_record) == "scenario"
    assert record_moves(scenario_record, "solutionMoves")[0] == Move(1, 2, 2)
    assert record_moves({}, "solutionMoves") == []


def test_state_payload_derives_missing_counts():
    state = state_from_payload({"vials": [{"segments": ["a", "b"]}, {"segments": []}]}, 2)
    assert state.color_count == 2
    assert state.empty_vial_count == 1


def test_unreadable_payloads():
    with pytest.raises(ValueError):
        state_from_payload({"vials": [{"colors": []}]}, 2)
    with pytest.raises(ValueError):
        moves_from_payload([{"source": 0, "amount": 1}])
    with pytest.raises(ValueError):
        record_capacity({"metadata": {}})
