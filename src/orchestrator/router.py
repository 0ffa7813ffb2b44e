"""Implementation router for the generator and solver roles."""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Dict, Mapping, Tuple

from project_config import get_config

IMPLEMENTATIONS: Dict[str, Dict[str, str]] = {
    "generator": {
        "reverse": "watersort.level_generator",
        "random": "watersort.random_level_generator",
    },
    "solver": {
        "bfs": "watersort.puzzle_solver",
    },
}
SUPPORTED_ROLES = frozenset(IMPLEMENTATIONS)

_DEFAULT_IMPL = {"generator": "reverse", "solver": "bfs"}


class RouterError(RuntimeError):
    """Raised when a module resolution request cannot be satisfied."""


@dataclass(frozen=True)
class ResolvedModule:
    """Description of the module chosen for a role."""

    role: str
    impl_id: str
    module_name: str
    decision_source: str
    fallback_used: bool
    config: Dict[str, Any]

    def load(self) -> ModuleType:
        return importlib.import_module(self.module_name)


def _normalise_env(env: Mapping[str, str]) -> Dict[str, str]:
    return {str(k).upper(): str(v) for k, v in env.items()}


def _extract_role_policy(role: str, profile: str) -> Dict[str, Any]:
    modules = get_config().get("modules", {})
    role_cfg = modules.get(role, {}) if isinstance(modules, dict) else {}

    policy: Dict[str, Any] = {}
    if isinstance(role_cfg, dict):
        policy.update({key: value for key, value in role_cfg.items() if key != "by_profile"})
        by_profile = role_cfg.get("by_profile")
        if isinstance(by_profile, dict):
            profile_block = by_profile.get(profile)
            if isinstance(profile_block, dict):
                policy.update(profile_block)

    policy.setdefault("impl", _DEFAULT_IMPL[role])
    policy.setdefault("fallback", _DEFAULT_IMPL[role])
    policy.setdefault("allow_fallback", True)
    return policy


def _resolve_impl(policy: Mapping[str, Any], env: Mapping[str, str], role: str) -> Tuple[str, str]:
    role_upper = role.upper()
    impl = str(policy["impl"])
    decision_source = "config"

    env_value = env.get(f"PUZZLE_{role_upper}_IMPL")
    if env_value:
        impl, decision_source = env_value, "env"
    cli_value = env.get(f"CLI_PUZZLE_{role_upper}_IMPL")
    if cli_value:
        impl, decision_source = cli_value, "cli"
    return impl.strip().lower(), decision_source


def resolve(role: str, profile: str = "dev", env: Mapping[str, str] | None = None) -> ResolvedModule:
    """Pick the implementation for *role*.

    Precedence is CLI override, then environment, then the ``[modules]``
    configuration (with ``by_profile`` blocks applied).  Unknown
    implementations fall back to the configured ``fallback`` when allowed.
    """

    if role not in SUPPORTED_ROLES:
        raise RouterError(f"Unsupported role '{role}'")

    policy = _extract_role_policy(role, (profile or "dev").lower())
    impl, decision_source = _resolve_impl(policy, _normalise_env(env or {}), role)

    registry = IMPLEMENTATIONS[role]
    fallback_used = False
    if impl not in registry:
        fallback = str(policy["fallback"])
        if not policy.get("allow_fallback", True):
            raise RouterError(f"Implementation '{impl}' for role '{role}' is not available")
        if fallback not in registry:
            raise RouterError(
                f"Requested implementation '{impl}' for role '{role}' is missing and no fallback is available"
            )
        impl, fallback_used, decision_source = fallback, True, "fallback"

    return ResolvedModule(
        role=role,
        impl_id=impl,
        module_name=registry[impl],
        decision_source=decision_source,
        fallback_used=fallback_used,
        config=dict(policy),
    )


__all__ = ["IMPLEMENTATIONS", "ResolvedModule", "RouterError", "SUPPORTED_ROLES", "resolve"]
