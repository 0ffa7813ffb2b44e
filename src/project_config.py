"""Loading of the project-wide ``config.toml`` for the water sort core."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - older interpreters
    import tomli as tomllib  # type: ignore[import-untyped]


_CONFIG_FILENAME = "config.toml"
_CONFIG_ENV = "PUZZLE_CONFIG_PATH"
_MISSING = object()


def _config_path() -> Path:
    override = os.environ.get(_CONFIG_ENV)
    if override:
        return Path(override).expanduser().resolve()
    return Path(__file__).resolve().parents[1] / _CONFIG_FILENAME


@lru_cache(maxsize=1)
def get_config() -> Dict[str, Any]:
    """Load and cache the project configuration as a dictionary.

    An installed package has no ``config.toml`` beside it; built-in defaults
    apply then.  A path named through ``PUZZLE_CONFIG_PATH`` must exist.
    """
    path = _config_path()
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except FileNotFoundError as exc:
        if not os.environ.get(_CONFIG_ENV):
            return {}
        raise RuntimeError(
            f"Configuration file '{path.name}' was not found at {path.parent}"
        ) from exc


def get_section(path: str, default: Any = _MISSING) -> Any:
    """Retrieve a nested configuration value using dotted notation."""

    data: Any = get_config()
    for part in path.split("."):
        if isinstance(data, dict) and part in data:
            data = data[part]
        else:
            if default is not _MISSING:
                return default
            raise KeyError(f"Configuration path '{path}' not found")
    return data


def get_int(path: str, default: int, *, env: Optional[Mapping[str, str]] = None, env_key: Optional[str] = None) -> int:
    """Return an integer setting, letting ``env_key`` in ``env`` take precedence."""

    if env_key:
        source = os.environ if env is None else env
        raw = source.get(env_key)
        if raw not in (None, ""):
            try:
                return int(str(raw).strip())
            except ValueError as exc:
                raise ValueError(f"Environment variable {env_key} must be an integer, got {raw!r}") from exc
    value = get_section(path, default=default)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Configuration value '{path}' must be an integer, got {value!r}") from exc


__all__ = ["get_config", "get_section", "get_int"]
