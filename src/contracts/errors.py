"""Issue and report types produced when a level record is validated."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Union

SEVERITY_ERROR = "ERROR"
SEVERITY_WARN = "WARN"

_SUMMARY_CODES = 5


def record_path(*parts: Union[str, int]) -> str:
    """Build a ``$``-rooted path into a record, e.g. ``$.shuffledState.vials[2]``."""

    components: List[str] = ["$"]
    for part in parts:
        components.append(f"[{part}]" if isinstance(part, int) else f".{part}")
    return "".join(components)


@dataclass(frozen=True)
class ValidationIssue:
    """Single finding about a level record."""

    code: str
    msg: str
    path: str
    severity: str

    @property
    def is_error(self) -> bool:
        return self.severity == SEVERITY_ERROR

    def to_payload(self) -> Dict[str, str]:
        return {"code": self.code, "msg": self.msg, "path": self.path, "severity": self.severity}


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of validating one level record, with per-stage timings."""

    ok: bool
    errors: List[ValidationIssue]
    warnings: List[ValidationIssue]
    timings_ms: Dict[str, int]

    def issues(self) -> List[ValidationIssue]:
        return self.errors + self.warnings

    def codes(self) -> List[str]:
        return [issue.code for issue in self.issues()]

    def blocking(self, warn_as_error: bool = False) -> List[ValidationIssue]:
        """Issues that reject the record; warnings count only when escalated."""

        return self.issues() if warn_as_error else list(self.errors)

    def summary(self, warn_as_error: bool = False) -> str:
        blocking = self.blocking(warn_as_error)
        if not blocking:
            return "ok"
        codes = ", ".join(issue.code for issue in blocking[:_SUMMARY_CODES])
        if len(blocking) > _SUMMARY_CODES:
            codes += f", ... ({len(blocking) - _SUMMARY_CODES} more)"
        return codes

    def to_payload(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "errors": [issue.to_payload() for issue in self.errors],
            "warnings": [issue.to_payload() for issue in self.warnings],
            "timings_ms": dict(self.timings_ms),
        }


class ManagedValidationError(Exception):
    """Raised by :func:`contracts.validator.assert_valid` with the failing report."""

    def __init__(self, message: str, report: ValidationReport) -> None:
        super().__init__(message)
        self.report = report


def make_error(code: str, msg: str, path: str) -> ValidationIssue:
    return ValidationIssue(code=code, msg=msg, path=path, severity=SEVERITY_ERROR)


def make_warning(code: str, msg: str, path: str) -> ValidationIssue:
    return ValidationIssue(code=code, msg=msg, path=path, severity=SEVERITY_WARN)


__all__ = [
    "SEVERITY_ERROR",
    "SEVERITY_WARN",
    "ManagedValidationError",
    "ValidationIssue",
    "ValidationReport",
    "make_error",
    "make_warning",
    "record_path",
]
