"""Public facade for level record validation."""

from __future__ import annotations

import os
import time
from typing import Any, Dict, List, Optional, Tuple, Union

import jsonschema

from . import loader, profiles, rulebook
from .errors import (
    SEVERITY_WARN,
    ManagedValidationError,
    ValidationIssue,
    ValidationReport,
    make_error,
    record_path,
)
from .profiles import LEVEL_RECORD, ProfileConfig

ProfileArg = Union[str, ProfileConfig, None]


def _choose_profile(profile: ProfileArg) -> ProfileConfig:
    if isinstance(profile, ProfileConfig):
        return profile
    if profile in (None, "", "auto"):
        return profiles.get_profile(os.environ.get("PUZZLE_VALIDATION_PROFILE"))
    return profiles.get_profile(str(profile))


def _jsonschema_path(exc: jsonschema.ValidationError) -> str:
    return record_path(*exc.absolute_path)


def _schema_stage(record: Any, expect_type: str, profile: ProfileConfig) -> List[ValidationIssue]:
    if not isinstance(record, dict):
        return [make_error("type.mismatch", "Record must be a JSON object", "$")]
    if not profile.check_schema:
        return []

    try:
        descriptor = loader.get_descriptor(expect_type)
        schema_dict = loader.load_schema(descriptor.schema_id, descriptor.schema_path)
    except KeyError:
        return [make_error("schema.not_found", f"Unknown artifact type {expect_type}", "$")]
    except (OSError, ValueError) as exc:
        return [make_error("schema.not_found", str(exc), "$.schema")]

    validator = loader.compile_schema(schema_dict)
    errors = sorted(validator.iter_errors(record), key=lambda err: list(err.absolute_path))
    return [make_error("type.mismatch", err.message, _jsonschema_path(err)) for err in errors]


def _apply_overrides(
    profile: ProfileConfig, artifact_type: str, issues: List[ValidationIssue]
) -> Tuple[List[ValidationIssue], List[ValidationIssue]]:
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []
    for issue in issues:
        adjusted = profile.apply_overrides(artifact_type, issue)
        if adjusted.severity == SEVERITY_WARN:
            warnings.append(adjusted)
        else:
            errors.append(adjusted)
    return errors, warnings


def validate(
    record: Dict[str, Any],
    expect_type: str = LEVEL_RECORD,
    profile: ProfileArg = None,
) -> ValidationReport:
    """Run schema, invariant and replay checks over *record*.

    Rule stages only run when the schema stage found no errors, since the
    rules assume a well-formed record.
    """

    profile_cfg = _choose_profile(profile)
    timings = {"schema": 0, "invariants": 0, "replay": 0}
    all_errors: List[ValidationIssue] = []
    all_warnings: List[ValidationIssue] = []

    def _collect(issues: List[ValidationIssue]) -> None:
        errors, warnings = _apply_overrides(profile_cfg, expect_type, issues)
        all_errors.extend(errors)
        all_warnings.extend(warnings)

    start = time.perf_counter()
    _collect(_schema_stage(record, expect_type, profile_cfg))
    timings["schema"] = int((time.perf_counter() - start) * 1000)

    context: Optional[rulebook.LevelContext] = None
    if not all_errors and isinstance(record, dict):
        context, parse_issues = rulebook.build_context(record)
        _collect(parse_issues)

    if context is not None and profile_cfg.check_invariants:
        start = time.perf_counter()
        _collect(rulebook.run_invariants(expect_type, record, context, profile_cfg))
        timings["invariants"] = int((time.perf_counter() - start) * 1000)

    if context is not None and profile_cfg.check_replay:
        start = time.perf_counter()
        _collect(rulebook.run_replays(expect_type, record, context, profile_cfg))
        timings["replay"] = int((time.perf_counter() - start) * 1000)

    return ValidationReport(ok=not all_errors, errors=all_errors, warnings=all_warnings, timings_ms=timings)


def assert_valid(
    record: Dict[str, Any],
    expect_type: str = LEVEL_RECORD,
    profile: ProfileArg = None,
) -> ValidationReport:
    """Validate *record* and raise :class:`ManagedValidationError` on failure."""

    profile_cfg = _choose_profile(profile)
    report = validate(record, expect_type, profile=profile_cfg)
    if not report.blocking(profile_cfg.warn_as_error):
        return report
    summary = report.summary(profile_cfg.warn_as_error)
    raise ManagedValidationError(f"Validation failed for {expect_type}: {summary}", report)


__all__ = [
    "ManagedValidationError",
    "assert_valid",
    "validate",
]
