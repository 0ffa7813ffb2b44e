"""Validation of serialised water sort level records."""

from __future__ import annotations

from .errors import ManagedValidationError, ValidationIssue, ValidationReport
from .profiles import LEVEL_RECORD, PROFILE_NAMES, ProfileConfig, get_profile
from .validator import assert_valid, validate

__all__ = [
    "LEVEL_RECORD",
    "ManagedValidationError",
    "PROFILE_NAMES",
    "ProfileConfig",
    "ValidationIssue",
    "ValidationReport",
    "assert_valid",
    "get_profile",
    "validate",
]
