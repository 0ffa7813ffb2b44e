"""Validation severity profiles (dev/ci/prod)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Mapping, Optional

from .errors import SEVERITY_WARN, ValidationIssue

LEVEL_RECORD = "LevelRecord"


@dataclass(frozen=True)
class ProfileConfig:
    """Profile toggles that govern which checks are executed."""

    name: str
    check_schema: bool = True
    check_invariants: bool = True
    check_replay: bool = True
    warn_as_error: bool = False
    invariant_rules: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    replay_rules: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    severity_overrides: Mapping[str, Mapping[str, str]] = field(default_factory=dict)

    def is_invariant_enabled(self, artifact_type: str, rule_name: str) -> bool:
        rules = self.invariant_rules.get(artifact_type)
        return rules is None or rule_name in rules

    def is_replay_enabled(self, artifact_type: str, rule_name: str) -> bool:
        rules = self.replay_rules.get(artifact_type)
        return rules is None or rule_name in rules

    def apply_overrides(self, artifact_type: str, issue: ValidationIssue) -> ValidationIssue:
        overrides: Dict[str, str] = {}
        overrides.update(self.severity_overrides.get("*", {}))
        overrides.update(self.severity_overrides.get(artifact_type, {}))
        desired = overrides.get(issue.code)
        if desired and desired != issue.severity:
            return replace(issue, severity=desired)
        return issue


_ALL_INVARIANTS = {
    LEVEL_RECORD: frozenset(
        {
            "level_capacity",
            "level_conservation",
            "level_no_partial",
            "level_no_sorted",
            "level_entropy",
            "level_metadata",
        }
    ),
}

_ALL_REPLAYS = {
    LEVEL_RECORD: frozenset({"generation_replay", "solution_replay"}),
}

_PROD_REPLAYS = {
    LEVEL_RECORD: frozenset({"solution_replay"}),
}

_PROFILES: Dict[str, ProfileConfig] = {
    "dev": ProfileConfig(
        name="dev",
        warn_as_error=False,
        invariant_rules=_ALL_INVARIANTS,
        replay_rules=_ALL_REPLAYS,
    ),
    "ci": ProfileConfig(
        name="ci",
        warn_as_error=True,
        invariant_rules=_ALL_INVARIANTS,
        replay_rules=_ALL_REPLAYS,
    ),
    "prod": ProfileConfig(
        name="prod",
        warn_as_error=False,
        invariant_rules=_ALL_INVARIANTS,
        replay_rules=_PROD_REPLAYS,
        severity_overrides={
            LEVEL_RECORD: {"invariant.level.metadata_drift": SEVERITY_WARN},
        },
    ),
}

PROFILE_NAMES = tuple(_PROFILES)


def get_profile(name: Optional[str]) -> ProfileConfig:
    """Return the profile matching *name* (defaults to ``dev``)."""

    key = (name or "dev").lower()
    if key not in _PROFILES:
        raise ValueError(f"Unknown validation profile: {name}")
    return _PROFILES[key]


__all__ = ["LEVEL_RECORD", "PROFILE_NAMES", "ProfileConfig", "get_profile"]
