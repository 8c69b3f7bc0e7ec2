from __future__ import annotations

import itertools
import threading

from .models import RecommendationResult


class HistoryStore:
    """Append-only log of completed recommendation results."""

    def __init__(self) -> None:
        self._results: list[RecommendationResult] = []
        self._by_id: dict[int, RecommendationResult] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        """Allocate the next generation id; ids are never reused."""
        with self._lock:
            return next(self._ids)

    def append(self, result: RecommendationResult) -> None:
        with self._lock:
            if result.id in self._by_id:
                raise ValueError(f"recommendation {result.id} already recorded")
            self._results.append(result)
            self._by_id[result.id] = result

    def get(self, result_id: int) -> RecommendationResult | None:
        with self._lock:
            return self._by_id.get(result_id)

    def recent(self, limit: int) -> list[RecommendationResult]:
        """Newest first, at most ``limit`` entries."""
        if limit <= 0:
            return []
        with self._lock:
            ordered = sorted(
                self._results,
                key=lambda r: (r.generated_at, r.id),
                reverse=True,
            )
        return ordered[:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
