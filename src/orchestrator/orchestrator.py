"""Level generation pipeline (generate -> re-verify -> validate -> store)."""

from __future__ import annotations

import argparse
import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from artifacts import artifact_store
from contracts import PROFILE_NAMES, validator
from ports import generator_port, solver_port
from project_config import get_section
from watersort.errors import GenerationError, InvalidConfigurationError
from watersort.level_record import to_record

from . import log as event_log

_LOGGER = logging.getLogger(__name__)

_RUN_CONFIG: Dict[str, Any] = get_section("run", default={})
_DEFAULT_ROOT_SEED = str(_RUN_CONFIG.get("root_seed", "default-root-seed"))
_DEFAULT_PROFILE = str(_RUN_CONFIG.get("profile", "dev"))
_REVERIFY_PROFILES = frozenset(str(name).lower() for name in _RUN_CONFIG.get("reverify_profiles", ["ci"]))


def derive_seed(root_seed: str, stage: str, index: Optional[Union[int, str]]) -> str:
    """Derive a deterministic child seed from the root seed and stage context."""

    material = "|".join([root_seed, stage, "" if index is None else str(index)])
    return uuid.uuid5(uuid.NAMESPACE_URL, material).hex


def _merge_env(overrides: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    env: Dict[str, str] = {str(k): str(v) for k, v in os.environ.items()}
    if overrides:
        env.update({str(k): str(v) for k, v in overrides.items()})
    return env


def _module_entry(resolved: Any) -> Dict[str, Any]:
    return {
        "impl": resolved.impl_id,
        "module": resolved.module_name,
        "decision_source": resolved.decision_source,
        "fallback_used": resolved.fallback_used,
    }


def run_pipeline(
    *,
    count: int = 1,
    params: Optional[Mapping[str, Any]] = None,
    env_overrides: Optional[Mapping[str, str]] = None,
    store_root: Optional[Union[str, Path]] = None,
    levels_dir: Optional[Union[str, Path]] = None,
) -> Dict[str, Any]:
    """Generate *count* levels from the root seed and return a run summary.

    Every level is validated under the active profile and stored in the
    artifact store; with ``levels_dir`` set it is also written as the next
    ``level-<n>.json``.  One JSONL event is appended per level.
    """

    env_map = _merge_env(env_overrides)
    root_seed = env_map.get("PUZZLE_ROOT_SEED") or _DEFAULT_ROOT_SEED
    profile = (env_map.get("PUZZLE_VALIDATION_PROFILE") or _DEFAULT_PROFILE).lower()
    run_id = f"run-{uuid.uuid5(uuid.NAMESPACE_URL, root_seed).hex[:12]}"

    results: Dict[str, Any] = {
        "run_id": run_id,
        "root_seed": root_seed,
        "profile": profile,
        "levels": [],
        "modules": {},
    }

    for index in range(count):
        seed = derive_seed(root_seed, "stage.generate.level", index)
        level, generator_module = generator_port.generate(params, seed=seed, profile=profile, env=env_map)
        results["modules"]["generator"] = _module_entry(generator_module)
        if level is None:
            event_log.append_event(event_log.level_failed(run_id, profile, index, seed, "no acceptable level"))
            raise GenerationError(f"Generator produced no acceptable level for seed {seed}", seed=seed)

        entry: Dict[str, Any] = {"index": index, "seed": seed, "attempts": level.attempts}

        if profile in _REVERIFY_PROFILES:
            verdict, solver_module = solver_port.solve(level.shuffled_state, profile=profile, env=env_map)
            results["modules"]["solver"] = _module_entry(solver_module)
            entry["reverify"] = verdict.to_payload()
            if not verdict.solved:
                _LOGGER.warning("Solver could not re-verify level %d (%s)", index, verdict.reason)

        record = to_record(level)
        validator.assert_valid(record, profile=profile)
        entry["artifact_id"] = artifact_store.save_artifact(record, root=store_root)
        entry["difficulty"] = level.evaluation.difficulty
        entry["solution_steps"] = len(level.solution_moves)
        if levels_dir is not None:
            entry["path"] = str(artifact_store.write_level(record, directory=levels_dir))

        event_log.append_event(event_log.level_generated(run_id, profile, entry))
        results["levels"].append(entry)

    return results


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the level generation pipeline.")
    parser.add_argument("--count", type=int, default=1, help="Number of levels to generate.")
    parser.add_argument("--seed", help="Root seed; overrides PUZZLE_ROOT_SEED and run.root_seed.")
    parser.add_argument("--profile", choices=PROFILE_NAMES, help="Validation profile.")
    parser.add_argument("--levels-dir", help="Also write each level as level-<n>.json into this directory.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    env: Dict[str, str] = {}
    if args.seed:
        env["PUZZLE_ROOT_SEED"] = args.seed
    if args.profile:
        env["PUZZLE_VALIDATION_PROFILE"] = args.profile
    try:
        result = run_pipeline(count=args.count, env_overrides=env, levels_dir=args.levels_dir)
    except (RuntimeError, InvalidConfigurationError, validator.ManagedValidationError) as exc:
        parser.error(str(exc))
    print(json.dumps(result, indent=2, sort_keys=True))
    return 0


__all__ = ["derive_seed", "run_pipeline", "build_parser", "main"]


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
