"""Port facades over the routed generator and solver implementations."""

from __future__ import annotations

from .generator_port import generate
from .solver_port import solve

__all__ = ["generate", "solve"]
