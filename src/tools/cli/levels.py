"""Command line helpers for generating, solving and validating levels."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from artifacts import artifact_store
from contracts import PROFILE_NAMES, ManagedValidationError, validate
from contracts.validator import assert_valid
from orchestrator.router import RouterError
from ports import generator_port, solver_port
from watersort.errors import GenerationError, InvalidConfigurationError
from watersort.level_record import states_from_record, to_record

_FAILURE_MESSAGE = "couldn't generate a valid puzzle, try again"


def _generator_params(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "color_count": args.colors,
        "vial_height": args.height,
        "empty_vial_count": args.empty,
        "max_empty_vials": args.empty,
        "shuffle_moves": args.moves,
    }


def _generator_env(args: argparse.Namespace) -> Dict[str, str]:
    return {"CLI_PUZZLE_GENERATOR_IMPL": args.impl} if args.impl else {}


def _generate_one(args: argparse.Namespace, seed: Optional[str]) -> Dict[str, Any]:
    level, resolved = generator_port.generate(
        _generator_params(args), seed=seed, profile=args.profile, env=_generator_env(args)
    )
    if level is None:
        raise GenerationError(f"no candidate qualified for seed {seed!r}", seed=seed)
    record = to_record(level)
    assert_valid(record, profile=args.profile)
    return {"record": record, "impl": resolved.impl_id}


def _summary(record: Dict[str, Any], impl: str, path: Optional[Path]) -> Dict[str, Any]:
    metadata = record["metadata"]
    return {
        "impl": impl,
        "seed": metadata.get("seed"),
        "difficulty": metadata["difficulty"],
        "solution_steps": metadata["estimatedSolutionSteps"],
        "path": str(path) if path is not None else None,
    }


def cmd_generate(args: argparse.Namespace) -> int:
    outcome = _generate_one(args, args.seed)
    record = outcome["record"]
    if args.stdout:
        print(json.dumps(record, indent=2, ensure_ascii=False))
        return 0
    path = artifact_store.write_level(record, args.output, directory=args.levels_dir)
    print(json.dumps(_summary(record, outcome["impl"], path), indent=2, sort_keys=True))
    return 0


def _iter_seeds(path: Path) -> Iterable[str]:
    for line in path.read_text().splitlines():
        value = line.strip()
        if not value or value.startswith("#"):
            continue
        yield value


def cmd_batch(args: argparse.Namespace) -> int:
    summaries: List[Dict[str, Any]] = []
    for seed in _iter_seeds(Path(args.file)):
        outcome = _generate_one(args, seed)
        path = artifact_store.write_level(outcome["record"], directory=args.levels_dir)
        summaries.append(_summary(outcome["record"], outcome["impl"], path))
    print(json.dumps(summaries, indent=2, sort_keys=True))
    return 0


def cmd_solve(args: argparse.Namespace) -> int:
    record = artifact_store.read_level(args.record)
    _, shuffled = states_from_record(record)
    options = {"timeout_ms": args.timeout_ms, "max_steps": args.max_steps}
    result, _ = solver_port.solve(shuffled, options=options, profile=args.profile)
    print(json.dumps(result.to_payload(), indent=2, sort_keys=True))
    return 0 if result.solved else 1


def cmd_validate(args: argparse.Namespace) -> int:
    record = artifact_store.read_level(args.record)
    report = validate(record, profile=args.profile)
    print(json.dumps(report.to_payload(), indent=2, sort_keys=True))
    return 0 if report.ok else 1


def _add_generation_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--impl", choices=["reverse", "random"], help="Generator implementation override")
    parser.add_argument("--colors", type=int, default=None, help="Number of colors")
    parser.add_argument("--height", type=int, default=None, help="Vial height (capacity)")
    parser.add_argument("--empty", type=int, default=None, help="Empty vials (maximum for the random generator)")
    parser.add_argument(
        "--moves",
        type=int,
        default=None,
        help="Upper bound on shuffle moves (reverse generator); the shuffle may stop earlier",
    )
    parser.add_argument("--profile", choices=PROFILE_NAMES, default="dev")
    parser.add_argument("--levels-dir", default=None, help="Directory for numbered level files")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Water sort level tools")
    sub = parser.add_subparsers(dest="command", required=True)

    generate = sub.add_parser("generate", help="Generate a single level")
    generate.add_argument("--seed", default=None)
    generate.add_argument("--output", default=None, help="Write the record to this file")
    generate.add_argument("--stdout", action="store_true", help="Print the record instead of writing it")
    _add_generation_options(generate)
    generate.set_defaults(func=cmd_generate)

    batch = sub.add_parser("batch", help="Generate one level per seed listed in a file")
    batch.add_argument("file")
    _add_generation_options(batch)
    batch.set_defaults(func=cmd_batch)

    solve = sub.add_parser("solve", help="Solve the shuffled state of a level record")
    solve.add_argument("record")
    solve.add_argument("--timeout-ms", type=int, default=None)
    solve.add_argument("--max-steps", type=int, default=None)
    solve.add_argument("--profile", choices=PROFILE_NAMES, default="dev")
    solve.set_defaults(func=cmd_solve)

    check = sub.add_parser("validate", help="Validate a level record file")
    check.add_argument("record")
    check.add_argument("--profile", choices=PROFILE_NAMES, default="dev")
    check.set_defaults(func=cmd_validate)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except (GenerationError, ManagedValidationError) as exc:
        print(f"{_FAILURE_MESSAGE}: {exc}", file=sys.stderr)
        return 1
    except (InvalidConfigurationError, RouterError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
