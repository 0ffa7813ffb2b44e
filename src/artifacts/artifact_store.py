"""Content-addressed storage of level records and numbered level files."""

from __future__ import annotations

import copy
import json
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

from contracts.jsoncanon import jcs_dump, jcs_sha256
from project_config import get_section

_REPO_ROOT = Path(__file__).resolve().parents[2]
_DEFAULT_TYPE = "LevelRecord"
_LEVEL_PATTERN = re.compile(r"^level-(\d+)\.json$")

PathLike = Union[str, Path]


def _resolve_dir(path: Optional[PathLike], config_key: str, default: str) -> Path:
    target = Path(path) if path is not None else Path(get_section(config_key, default=default))
    if not target.is_absolute():
        target = _REPO_ROOT / target
    return target


def artifact_root(root: Optional[PathLike] = None) -> Path:
    return _resolve_dir(root, "run.artifacts_dir", "exports/artifacts")


def canonicalize(obj: Dict[str, Any]) -> bytes:
    """Serialise *obj* into canonical JSON bytes."""

    return jcs_dump(obj)


def compute_artifact_id(obj: Dict[str, Any]) -> str:
    """Hash of the canonical form of *obj* without its ``artifact_id`` field."""

    base = dict(obj)
    base.pop("artifact_id", None)
    return jcs_sha256(base)


def save_artifact(obj: Dict[str, Any], *, artifact_type: str = _DEFAULT_TYPE, root: Optional[PathLike] = None) -> str:
    """Persist *obj* under ``<root>/<artifact_type>/<artifact_id>.json`` and return the id."""

    if not isinstance(obj, dict):
        raise TypeError("Artifact must be a mapping")

    artifact_copy: Dict[str, Any] = copy.deepcopy(obj)
    artifact_id = compute_artifact_id(artifact_copy)
    existing_id = artifact_copy.get("artifact_id")
    if existing_id is not None and existing_id != artifact_id:
        raise ValueError("Provided artifact_id does not match canonical hash")
    artifact_copy["artifact_id"] = artifact_id

    target_dir = artifact_root(root) / artifact_type
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / f"{artifact_id}.json").write_bytes(canonicalize(artifact_copy))
    return artifact_id


def load_artifact(artifact_id: str, *, root: Optional[PathLike] = None) -> Dict[str, Any]:
    if not artifact_id.startswith("sha256-"):
        raise ValueError("Artifact identifier must start with 'sha256-'")
    for type_dir in sorted(artifact_root(root).glob("*")):
        candidate = type_dir / f"{artifact_id}.json"
        if candidate.is_file():
            return json.loads(candidate.read_text("utf-8"))
    raise FileNotFoundError(f"Artifact '{artifact_id}' was not found in the store")


def next_level_path(directory: Optional[PathLike] = None) -> Path:
    """Return ``level-<n>.json`` one past the highest number already in *directory*."""

    target = _resolve_dir(directory, "run.levels_dir", "exports/levels")
    highest = 0
    if target.is_dir():
        for entry in target.iterdir():
            match = _LEVEL_PATTERN.match(entry.name)
            if match:
                highest = max(highest, int(match.group(1)))
    return target / f"level-{highest + 1}.json"


def write_level(record: Dict[str, Any], path: Optional[PathLike] = None, *, directory: Optional[PathLike] = None) -> Path:
    """Write *record* as indented JSON to *path* or the next free level file."""

    target = Path(path) if path is not None else next_level_path(directory)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(record, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return target


def read_level(path: PathLike) -> Dict[str, Any]:
    return json.loads(Path(path).read_text("utf-8"))


__all__ = [
    "artifact_root",
    "canonicalize",
    "compute_artifact_id",
    "load_artifact",
    "next_level_path",
    "read_level",
    "save_artifact",
    "write_level",
]
