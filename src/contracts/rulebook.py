"""Central registry of level record invariants and replay rules."""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from watersort.game_state import GameState, Move
from watersort.level_generator import GENERATION_METHOD as REVERSE_METHOD
from watersort.level_generator import get_reverse_moves
from watersort.level_record import record_capacity, record_moves, states_from_record
from watersort.puzzle_utils import calculate_entropy, calculate_fragmentation

from .errors import ValidationIssue, make_error, make_warning, record_path
from .profiles import LEVEL_RECORD, ProfileConfig


@dataclass(frozen=True)
class LevelContext:
    """Parsed view of a record shared by every rule."""

    capacity: int
    initial: GameState
    shuffled: GameState
    generation_moves: List[Move]
    solution_moves: List[Move]


RuleCheck = Callable[[dict, LevelContext, ProfileConfig], Iterable[ValidationIssue]]


@dataclass(frozen=True)
class InvariantRule:
    name: str
    check: RuleCheck


@dataclass(frozen=True)
class ReplayRule:
    name: str
    check: RuleCheck


def build_context(record: dict) -> Tuple[Optional[LevelContext], List[ValidationIssue]]:
    """Parse *record* into a :class:`LevelContext` or explain why it cannot be parsed."""

    try:
        capacity = record_capacity(record)
        initial, shuffled = states_from_record(record)
        generation = record_moves(record, "generationMoves")
        solution = record_moves(record, "solutionMoves")
    except (KeyError, TypeError, ValueError) as exc:
        return None, [make_error("record.unreadable", str(exc), record_path())]
    return LevelContext(capacity, initial, shuffled, generation, solution), []


def _state_paths(context: LevelContext) -> Iterable[Tuple[str, GameState]]:
    yield "initialState", context.initial
    yield "shuffledState", context.shuffled


def _level_capacity(_record: dict, context: LevelContext, _profile: ProfileConfig) -> Iterable[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for field_name, state in _state_paths(context):
        for index, vial in enumerate(state.vials):
            if len(vial) > context.capacity:
                issues.append(
                    make_error(
                        "invariant.level.capacity",
                        f"vial holds {len(vial)} segments, capacity is {context.capacity}",
                        record_path(field_name, "vials", index, "segments"),
                    )
                )
    return issues


def _color_totals(state: GameState) -> Counter:
    return Counter(segment for vial in state.vials for segment in vial.segments)


def _level_conservation(_record: dict, context: LevelContext, _profile: ProfileConfig) -> Iterable[ValidationIssue]:
    issues: List[ValidationIssue] = []
    initial_totals = _color_totals(context.initial)
    shuffled_totals = _color_totals(context.shuffled)
    if initial_totals != shuffled_totals:
        issues.append(
            make_error(
                "invariant.level.conservation",
                "shuffled state does not hold the same segments as the initial state",
                record_path("shuffledState"),
            )
        )
    for color, total in sorted(shuffled_totals.items(), key=lambda item: str(item[0])):
        if total != context.capacity:
            issues.append(
                make_error(
                    "invariant.level.conservation",
                    f"color {color!r} has {total} segments, expected {context.capacity}",
                    record_path("shuffledState"),
                )
            )
    return issues


def _level_no_partial(_record: dict, context: LevelContext, _profile: ProfileConfig) -> Iterable[ValidationIssue]:
    return [
        make_error(
            "invariant.level.partial_vial",
            "vial is neither empty nor full",
            record_path("shuffledState", "vials", index),
        )
        for index, vial in enumerate(context.shuffled.vials)
        if not vial.is_empty() and not vial.is_full()
    ]


def _level_no_sorted(_record: dict, context: LevelContext, _profile: ProfileConfig) -> Iterable[ValidationIssue]:
    return [
        make_error(
            "invariant.level.sorted_vial",
            "vial is already sorted",
            record_path("shuffledState", "vials", index),
        )
        for index, vial in enumerate(context.shuffled.vials)
        if not vial.is_empty() and vial.is_complete()
    ]


def _level_entropy(_record: dict, context: LevelContext, _profile: ProfileConfig) -> Iterable[ValidationIssue]:
    entropy = calculate_entropy(context.shuffled)
    threshold = context.initial.color_count * 0.8
    if entropy > threshold:
        return []
    return [
        make_warning(
            "invariant.level.low_entropy",
            f"entropy {entropy:g} does not exceed {threshold:g}",
            record_path("shuffledState"),
        )
    ]


def _level_metadata(record: dict, context: LevelContext, _profile: ProfileConfig) -> Iterable[ValidationIssue]:
    issues: List[ValidationIssue] = []
    metadata = record.get("metadata") or {}
    if metadata.get("totalVials") != len(context.shuffled.vials):
        issues.append(
            make_error(
                "invariant.level.metadata_mismatch",
                f"totalVials {metadata.get('totalVials')!r} but shuffled state has {len(context.shuffled.vials)} vials",
                record_path("metadata", "totalVials"),
            )
        )
    if metadata.get("estimatedSolutionSteps") != len(context.solution_moves):
        issues.append(
            make_error(
                "invariant.level.metadata_mismatch",
                "estimatedSolutionSteps does not match the number of solution moves",
                record_path("metadata", "estimatedSolutionSteps"),
            )
        )
    expected = {
        "entropy": calculate_entropy(context.shuffled),
        "fragmentation": calculate_fragmentation(context.shuffled),
    }
    for key, value in expected.items():
        recorded = metadata.get(key)
        if not isinstance(recorded, (int, float)) or not math.isclose(recorded, value, rel_tol=1e-9, abs_tol=1e-9):
            issues.append(
                make_error(
                    "invariant.level.metadata_drift",
                    f"{key} {recorded!r} differs from recomputed {value!r}",
                    record_path("metadata", key),
                )
            )
    return issues


def _generation_replay(record: dict, context: LevelContext, _profile: ProfileConfig) -> Iterable[ValidationIssue]:
    metadata = record.get("metadata") or {}
    if not context.generation_moves and metadata.get("generationMethod") != REVERSE_METHOD:
        return []
    state = context.initial
    for index, move in enumerate(context.generation_moves):
        if move not in get_reverse_moves(state):
            return [
                make_error(
                    "replay.generation.illegal_move",
                    f"move {move.to_payload()} is not a legal un-pour",
                    record_path("generationMoves", index),
                )
            ]
        state = state.apply_move(move)
    if state.get_state_hash() != context.shuffled.get_state_hash():
        return [
            make_error(
                "replay.generation.mismatch",
                "generation moves do not reproduce the shuffled state",
                record_path("generationMoves"),
            )
        ]
    return []


def _solution_replay(_record: dict, context: LevelContext, _profile: ProfileConfig) -> Iterable[ValidationIssue]:
    state = context.shuffled
    for index, move in enumerate(context.solution_moves):
        if move not in state.get_available_moves():
            return [
                make_error(
                    "replay.solution.illegal_move",
                    f"move {move.to_payload()} is not an available move",
                    record_path("solutionMoves", index),
                )
            ]
        state = state.apply_move(move)
    if not state.is_complete():
        return [
            make_error(
                "replay.solution.incomplete",
                "solution moves do not complete the puzzle",
                record_path("solutionMoves"),
            )
        ]
    return []


_RULES: Dict[str, Dict[str, list]] = {
    LEVEL_RECORD: {
        "invariants": [
            InvariantRule("level_capacity", _level_capacity),
            InvariantRule("level_conservation", _level_conservation),
            InvariantRule("level_no_partial", _level_no_partial),
            InvariantRule("level_no_sorted", _level_no_sorted),
            InvariantRule("level_entropy", _level_entropy),
            InvariantRule("level_metadata", _level_metadata),
        ],
        "replays": [
            ReplayRule("generation_replay", _generation_replay),
            ReplayRule("solution_replay", _solution_replay),
        ],
    },
}


def run_invariants(artifact_type: str, record: dict, context: LevelContext, profile: ProfileConfig) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for rule in _RULES.get(artifact_type, {}).get("invariants", []):
        if profile.is_invariant_enabled(artifact_type, rule.name):
            issues.extend(rule.check(record, context, profile))
    return issues


def run_replays(artifact_type: str, record: dict, context: LevelContext, profile: ProfileConfig) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for rule in _RULES.get(artifact_type, {}).get("replays", []):
        if profile.is_replay_enabled(artifact_type, rule.name):
            issues.extend(rule.check(record, context, profile))
    return issues


RULES = _RULES

__all__ = [
    "InvariantRule",
    "LevelContext",
    "RULES",
    "ReplayRule",
    "build_context",
    "run_invariants",
    "run_replays",
]
