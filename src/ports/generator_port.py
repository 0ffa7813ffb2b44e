"""Facade dispatching level generation to the configured implementation."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple, Union

from orchestrator.router import ResolvedModule, resolve
from watersort.level_generator import GeneratedLevel

from ._utils import build_env, merged_params


def generate(
    params: Optional[Mapping[str, Any]] = None,
    *,
    seed: Union[int, str, None] = None,
    profile: str = "dev",
    env: Optional[Mapping[str, str]] = None,
) -> Tuple[Optional[GeneratedLevel], ResolvedModule]:
    """Generate one level with the generator selected for *profile*.

    ``params`` overrides the ``[generator.<impl>]`` configuration section.
    The randomized implementation may return ``None`` when no candidate
    qualified.
    """

    env_map = build_env(env)
    resolved = resolve("generator", profile, env_map)
    module = resolved.load()

    handler = getattr(module, "port_generate", None)
    if handler is None:
        raise AttributeError(f"Generator implementation '{resolved.module_name}' does not expose 'port_generate'")

    level = handler(merged_params(f"generator.{resolved.impl_id}", params), seed=seed)
    return level, resolved


__all__ = ["generate"]
