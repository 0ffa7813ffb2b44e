"""Serialised level records exchanged with hosts (UI, persistence, CLI).

Record layout::

    {
      "initialState": {"vials": [{"segments": [...]}, ...], "colorCount": n, "emptyVialCount": m},
      "shuffledState": {"vials": [{"segments": [...]}, ...]},
      "generationMoves": [{"source": i, "target": j, "amount": k}, ...],
      "solutionMoves": [...],
      "metadata": {"vialCapacity", "totalVials", "difficulty", "entropy",
                   "fragmentation", "estimatedSolutionSteps",
                   "generationMethod", "seed"}
    }

Segment lists are copied in bottom-to-top order so that loading and dumping
a state reproduces identical arrays.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .game_state import GameState, Move
from .level_generator import GeneratedLevel


def state_to_payload(state: GameState, *, include_counts: bool = True) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"vials": [{"segments": list(vial.segments)} for vial in state.vials]}
    if include_counts:
        payload["colorCount"] = state.color_count
        payload["emptyVialCount"] = state.empty_vial_count
    return payload


def state_from_payload(payload: Mapping[str, Any], capacity: int) -> GameState:
    """Build a :class:`GameState`; missing counts are derived from the vials."""

    try:
        segments = [list(vial["segments"]) for vial in payload["vials"]]
    except (KeyError, TypeError) as exc:
        raise ValueError("State payload must hold 'vials' with 'segments' lists") from exc
    return GameState.from_segments(
        segments,
        capacity,
        color_count=payload.get("colorCount"),
        empty_vial_count=payload.get("emptyVialCount"),
    )


def moves_to_payload(moves: Iterable[Move]) -> List[Dict[str, int]]:
    return [move.to_payload() for move in moves]


def moves_from_payload(payload: Iterable[Mapping[str, Any]]) -> List[Move]:
    return [Move.from_payload(item) for item in payload]


def to_record(level: GeneratedLevel) -> Dict[str, Any]:
    """Serialise a generated level into its external record form."""

    evaluation = level.evaluation
    metadata: Dict[str, Any] = {
        "vialCapacity": level.vial_capacity,
        "totalVials": level.shuffled_state.total_vials,
        "difficulty": evaluation.difficulty,
        "entropy": evaluation.entropy,
        "fragmentation": evaluation.fragmentation,
        "estimatedSolutionSteps": len(level.solution_moves),
        "generationMethod": level.generation_method,
        "seed": level.seed,
    }
    return {
        "initialState": state_to_payload(level.initial_state),
        "shuffledState": state_to_payload(level.shuffled_state, include_counts=False),
        "generationMoves": moves_to_payload(level.generation_moves),
        "solutionMoves": moves_to_payload(level.solution_moves),
        "metadata": metadata,
    }


def record_capacity(record: Mapping[str, Any]) -> int:
    try:
        return int(record["metadata"]["vialCapacity"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("Level record is missing metadata.vialCapacity") from exc


def states_from_record(record: Mapping[str, Any]) -> Tuple[GameState, GameState]:
    """Return ``(initial_state, shuffled_state)`` of a level record.

    The shuffled state inherits ``colorCount`` from the initial state since
    the record stores it only there.
    """

    capacity = record_capacity(record)
    initial = state_from_payload(record["initialState"], capacity)
    shuffled = state_from_payload(record["shuffledState"], capacity)
    shuffled.color_count = initial.color_count
    return initial, shuffled


def record_moves(record: Mapping[str, Any], key: str) -> List[Move]:
    return moves_from_payload(record.get(key) or [])


def record_seed(record: Mapping[str, Any]) -> Optional[Any]:
    metadata = record.get("metadata") or {}
    return metadata.get("seed")


__all__ = [
    "moves_from_payload",
    "moves_to_payload",
    "record_capacity",
    "record_moves",
    "record_seed",
    "state_from_payload",
    "state_to_payload",
    "states_from_record",
    "to_record",
]
