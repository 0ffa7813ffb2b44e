"""Routing, event logging and the level generation pipeline."""

from .orchestrator import run_pipeline
from .router import ResolvedModule, RouterError, resolve

__all__ = [
    "ResolvedModule",
    "RouterError",
    "resolve",
    "run_pipeline",
]
