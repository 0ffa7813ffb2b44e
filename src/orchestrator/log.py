"""JSONL journal of level pipeline outcomes.

Events land in ``<events_dir>/<YYYYMMDD>/levels_NN.jsonl``; a segment is
closed once it reaches ``max_bytes`` and the next number is opened.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from project_config import get_section

__all__ = [
    "LEVEL_FAILED",
    "LEVEL_GENERATED",
    "LevelEvent",
    "append_event",
    "configure",
    "current_log_path",
    "level_failed",
    "level_generated",
    "read_events",
]

LEVEL_GENERATED = "level.generated"
LEVEL_FAILED = "level.failed"

_SEGMENT_PATTERN = "levels_{:02d}.jsonl"

_LOCK = threading.Lock()
_LOG_DIR = Path(get_section("logging.events_dir", default="logs/events"))
_MAX_BYTES = int(get_section("logging.max_bytes", default=5 * 1024 * 1024))
_CURRENT_PATH: Optional[Path] = None


@dataclass(frozen=True)
class LevelEvent:
    """What happened to one level of a pipeline run."""

    event: str
    run_id: str
    index: int
    seed: str
    profile: str
    details: Mapping[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        payload = dict(self.details)
        payload.update(
            event=self.event,
            run_id=self.run_id,
            index=self.index,
            seed=self.seed,
            profile=self.profile,
        )
        return payload


def level_generated(run_id: str, profile: str, entry: Mapping[str, Any]) -> LevelEvent:
    """Event for a level that was validated and stored; ``entry`` is its pipeline summary."""

    details = {key: value for key, value in entry.items() if key not in ("index", "seed")}
    return LevelEvent(LEVEL_GENERATED, run_id, int(entry["index"]), str(entry["seed"]), profile, details)


def level_failed(run_id: str, profile: str, index: int, seed: str, reason: str) -> LevelEvent:
    return LevelEvent(LEVEL_FAILED, run_id, index, seed, profile, {"reason": reason})


def configure(base_dir: Union[str, Path], *, max_bytes: Optional[int] = None) -> None:
    """Direct all subsequent events to ``base_dir``."""

    global _LOG_DIR, _MAX_BYTES, _CURRENT_PATH
    _LOG_DIR = Path(base_dir)
    if max_bytes:
        _MAX_BYTES = max_bytes
    _CURRENT_PATH = None


def _has_room(path: Path) -> bool:
    return not path.exists() or path.stat().st_size < _MAX_BYTES


def _segment_for_today() -> Path:
    global _CURRENT_PATH
    day_dir = _LOG_DIR / datetime.now(timezone.utc).strftime("%Y%m%d")
    day_dir.mkdir(parents=True, exist_ok=True)
    if _CURRENT_PATH is not None and _CURRENT_PATH.parent == day_dir and _has_room(_CURRENT_PATH):
        return _CURRENT_PATH

    number = 0
    while not _has_room(day_dir / _SEGMENT_PATTERN.format(number)):
        number += 1
    _CURRENT_PATH = day_dir / _SEGMENT_PATTERN.format(number)
    return _CURRENT_PATH


def append_event(event: LevelEvent) -> Path:
    """Write ``event`` as one JSON line stamped with ``ts`` and return the segment used."""

    payload = event.to_payload()
    payload.setdefault("ts", datetime.now(timezone.utc).isoformat(timespec="milliseconds"))
    line = json.dumps(payload, sort_keys=True, ensure_ascii=False)
    with _LOCK:
        path = _segment_for_today()
        with path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")
    return path


def read_events(path: Union[str, Path], event: Optional[str] = None) -> List[Dict[str, Any]]:
    """Load the events of one segment, optionally only those named ``event``."""

    with Path(path).open("r", encoding="utf-8") as handle:
        events = [json.loads(line) for line in handle if line.strip()]
    if event is None:
        return events
    return [item for item in events if item.get("event") == event]


def current_log_path() -> Optional[Path]:
    return _CURRENT_PATH
