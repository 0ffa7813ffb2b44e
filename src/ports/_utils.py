"""Utility helpers for port facades."""

from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

from project_config import get_section


def build_env(overrides: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Merge process environment with optional overrides."""

    env: Dict[str, str] = {str(k): str(v) for k, v in os.environ.items()}
    if overrides:
        env.update({str(k): str(v) for k, v in overrides.items()})
    return env


def merged_params(section: str, overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Configuration section ``section`` with caller overrides layered on top."""

    params: Dict[str, Any] = dict(get_section(section, default={}))
    if overrides:
        params.update({key: value for key, value in overrides.items() if value is not None})
    return params


__all__ = ["build_env", "merged_params"]
