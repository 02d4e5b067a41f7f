"""In-memory, time-boxed snapshot of the last successful full load."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from . import config
from .models import Place


@dataclass
class CacheEntry:
    places: List[Place]
    timestamp: float


class SnapshotCache:
    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = float(ttl_seconds if ttl_seconds is not None else config.CACHE_TTL_SECONDS)
        self.clock = clock
        self._entry: Optional[CacheEntry] = None

    def is_valid(self) -> bool:
        if self._entry is None or not self._entry.places:
            return False
        return (self.clock() - self._entry.timestamp) < self.ttl_seconds

    def load(self) -> Optional[List[Place]]:
        if not self.is_valid():
            return None
        return [p.copy() for p in self._entry.places]

    def store(self, places: List[Place]) -> None:
        self._entry = CacheEntry(places=[p.copy() for p in places], timestamp=self.clock())

    def clear(self) -> None:
        self._entry = None

    def age_seconds(self) -> Optional[float]:
        if self._entry is None:
            return None
        return self.clock() - self._entry.timestamp
