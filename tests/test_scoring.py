from __future__ import annotations

import pytest

from watersort.game_state import GameState, Move
from watersort.puzzle_utils import consolidation_score
from watersort.scoring import ConsolidationScorer, MixingScorer


def test_mixing_scorer_rewards_breaking_sorted_vials():
    state = GameState.from_segments([["red", "red"], ["blue", "blue"], []], 2)
    scorer = MixingScorer()
    # Result entropy 2 and fragmentation 1, plus the broken sorted vial.
    assert scorer(state, Move(0, 2, 1)) == pytest.approx(2 * 0.3 + 1 * 0.2 + 10)
    assert scorer(state, Move(0, 2, 2)) == pytest.approx(10)


def test_mixing_scorer_rewards_mixing_colours():
    state = GameState.from_segments([["red", "red", "blue"], ["blue", "blue"], ["red"]], 3)
    scorer = MixingScorer(entropy_weight=0, fragmentation_weight=0)
    assert scorer(state, Move(0, 2, 1)) == pytest.approx(5)
    assert scorer(state, Move(0, 1, 1)) == pytest.approx(0)


def test_consolidation_scorer_matches_default_ordering():
    state = GameState.from_segments([["red", "blue"], ["blue"], []], 2)
    scorer = ConsolidationScorer()
    for move in state.get_available_moves():
        assert scorer(state, move) == consolidation_score(state, move)
