"""
Filter Generations
Tracks the newest filter selection per (landlord, report) so a response built
for an older selection can be rejected instead of overwriting a newer one.
"""
from __future__ import annotations

import threading
from typing import Dict, Optional, Tuple

GENERATION_HEADER = "X-Filter-Generation"


class FilterGenerationRegistry:
    """Highest generation seen per (landlord_id, report); thread safe."""

    def __init__(self):
        self._lock = threading.Lock()
        self._latest: Dict[Tuple[str, str], int] = {}

    def begin(self, landlord_id: str, report: str, generation: Optional[int]) -> None:
        """Record a request's generation as it arrives."""
        if generation is None:
            return
        key = (str(landlord_id), report)
        with self._lock:
            if generation > self._latest.get(key, -1):
                self._latest[key] = generation

    def is_stale(self, landlord_id: str, report: str, generation: Optional[int]) -> bool:
        """True once a newer generation has arrived for the same report."""
        if generation is None:
            return False
        with self._lock:
            return self._latest.get((str(landlord_id), report), -1) > generation

    def latest(self, landlord_id: str, report: str) -> Optional[int]:
        with self._lock:
            return self._latest.get((str(landlord_id), report))

    def reset(self) -> None:
        with self._lock:
            self._latest.clear()


generation_registry = FilterGenerationRegistry()
