from __future__ import annotations

import copy
from typing import Any, Dict

import pytest

from orchestrator import log as event_log

# Two colours, capacity four, one empty vial.  Three un-pours from the solved
# state; the solution replays them backwards.
_SCENARIO_RECORD: Dict[str, Any] = {
    "initialState": {
        "vials": [
            {"segments": ["red", "red", "red", "red"]},
            {"segments": ["blue", "blue", "blue", "blue"]},
            {"segments": []},
        ],
        "colorCount": 2,
        "emptyVialCount": 1,
    },
    "shuffledState": {
        "vials": [
            {"segments": ["red", "red", "blue", "blue"]},
            {"segments": ["blue", "blue", "red", "red"]},
            {"segments": []},
        ]
    },
    "generationMoves": [
        {"source": 0, "target": 2, "amount": 2},
        {"source": 1, "target": 0, "amount": 2},
        {"source": 2, "target": 1, "amount": 2},
    ],
    "solutionMoves": [
        {"source": 1, "target": 2, "amount": 2},
        {"source": 0, "target": 1, "amount": 2},
        {"source": 2, "target": 0, "amount": 2},
    ],
    "metadata": {
        "vialCapacity": 4,
        "totalVials": 3,
        "difficulty": 4.6,
        "entropy": 8.0,
        "fragmentation": 2,
        "estimatedSolutionSteps": 3,
        "generationMethod": "reverse-shuffle",
        "seed": "scenario",
    },
}


@pytest.fixture
def scenario_record() -> Dict[str, Any]:
    return copy.deepcopy(_SCENARIO_RECORD)


@pytest.fixture
def event_dir(tmp_path, monkeypatch):
    target = tmp_path / "events"
    monkeypatch.setattr(event_log, "_LOG_DIR", target)
    monkeypatch.setattr(event_log, "_CURRENT_PATH", None)
    return target
