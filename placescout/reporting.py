"""Output reporting helpers."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence, TextIO

from .models import Place


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


@contextmanager
def atomic_writer(
    path: str,
    mode: str = "w",
    encoding: str = "utf-8",
) -> Iterator[TextIO]:
    dir_path = os.path.dirname(path) or "."
    base = os.path.basename(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{base}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, mode, encoding=encoding) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def write_places_json(path: str, places: Sequence[Place], summary: Optional[Dict[str, Any]] = None) -> None:
    payload = {
        "generated_at": utc_now_iso(),
        "summary": summary or {},
        "places": [p.to_dict() for p in places],
    }
    ensure_dir(os.path.dirname(path) or ".")
    with atomic_writer(path) as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


class ProgressTracker:
    """Monotonic 0..100 progress for one load cycle."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.stage = "idle"
        self.value = 0

    def reset(self, stage: str = "idle") -> None:
        self.stage = stage
        self.value = 0

    def set_stage(self, stage: str) -> None:
        self.stage = stage
        self.logger.info("Progress: stage=%s value=%s", stage, self.value)

    def advance_to(self, value: float) -> int:
        value = int(max(0, min(100, value)))
        # Never regress within a cycle.
        if value > self.value:
            self.value = value
        return self.value

    def span(self, start: float, end: float, done: int, total: int) -> int:
        if total <= 0:
            return self.advance_to(end)
        return self.advance_to(start + (end - start) * (done / total))


def render_summary(summary: Dict[str, Any], places: Sequence[Place]) -> List[str]:
    lines = [
        f"State: {summary.get('state')}",
        f"Loaded places: {summary.get('total_places', 0)}",
        f"Matching filters: {summary.get('filtered_places', 0)}",
        f"Visible in viewport: {summary.get('visible_places', 0)}",
        f"Progress: {summary.get('progress', 0)}%",
    ]
    if summary.get("error"):
        lines.append(f"Error: {summary['error']}")
    if summary.get("notice"):
        lines.append(f"Notice: {summary['notice']}")
    for place in places:
        distance = place.distance_miles_from_user
        dist_str = f"{distance:.1f} mi" if distance is not None else "? mi"
        gem = " [hidden gem]" if place.hidden_gem else ""
        tags = ", ".join(place.interests) or "-"
        lines.append(f"- {place.name} ({tags}) {dist_str}{gem}")
    return lines
