"""Schema catalog loading for level record validation."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import jsonschema

_REPO_ROOT = Path(__file__).resolve().parents[2]
_CONTRACT_ROOT = _REPO_ROOT / "PuzzleContracts"
_CATALOG_PATH = _CONTRACT_ROOT / "catalog.json"


@dataclass(frozen=True)
class SchemaDescriptor:
    """Catalog entry pointing at one JSON schema."""

    artifact_type: str
    version: str
    schema_id: str
    schema_path: str


_catalog_cache: Optional[Dict[str, SchemaDescriptor]] = None
_schema_cache: Dict[Tuple[str, str], Dict[str, Any]] = {}
_compiled_cache: Dict[str, Any] = {}


def load_catalog() -> Dict[str, SchemaDescriptor]:
    """Load and cache ``PuzzleContracts/catalog.json``."""

    global _catalog_cache
    if _catalog_cache is not None:
        return _catalog_cache

    raw_catalog = json.loads(_CATALOG_PATH.read_text("utf-8"))
    _catalog_cache = {
        artifact_type: SchemaDescriptor(
            artifact_type=artifact_type,
            version=payload["version"],
            schema_id=payload["schema_id"],
            schema_path=payload["schema_path"],
        )
        for artifact_type, payload in raw_catalog.items()
    }
    return _catalog_cache


def get_descriptor(artifact_type: str) -> SchemaDescriptor:
    catalog = load_catalog()
    if artifact_type not in catalog:
        raise KeyError(f"Unknown artifact type: {artifact_type}")
    return catalog[artifact_type]


def load_schema(schema_id: str, schema_path: str) -> Dict[str, Any]:
    """Load a schema from the local contracts directory only."""

    if "://" in schema_path:
        raise ValueError("Remote schema paths are not permitted")

    resolved = (_CONTRACT_ROOT / schema_path).resolve()
    if not str(resolved).startswith(str(_CONTRACT_ROOT.resolve())):
        raise ValueError("Schema path escapes the contracts directory")

    cache_key = (schema_id, schema_path)
    if cache_key not in _schema_cache:
        schema = json.loads(resolved.read_text("utf-8"))
        if "$id" in schema and schema["$id"] != schema_id:
            raise ValueError(
                f"Schema id mismatch: catalog has {schema_id!r}, schema has {schema['$id']!r}"
            )
        _schema_cache[cache_key] = schema
    return copy.deepcopy(_schema_cache[cache_key])


def compile_schema(schema_dict: Dict[str, Any]) -> Any:
    """Return a cached Draft 2020-12 validator for *schema_dict*."""

    cache_key = schema_dict.get("$id", "")
    if cache_key not in _compiled_cache:
        jsonschema.Draft202012Validator.check_schema(schema_dict)
        _compiled_cache[cache_key] = jsonschema.Draft202012Validator(schema_dict)
    return _compiled_cache[cache_key]


__all__ = [
    "SchemaDescriptor",
    "compile_schema",
    "get_descriptor",
    "load_catalog",
    "load_schema",
]
