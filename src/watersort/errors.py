"""Exceptions raised by the water sort core."""

from __future__ import annotations


class InvalidConfigurationError(ValueError):
    """Raised when generation parameters cannot describe a valid puzzle."""


class GenerationError(RuntimeError):
    """Raised when no acceptable level could be produced within the budgets."""

    def __init__(self, message: str, *, seed: object = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.seed = seed
        self.attempts = attempts


__all__ = ["InvalidConfigurationError", "GenerationError"]
