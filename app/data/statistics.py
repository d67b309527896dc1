"""Cache hit/miss counters reported by the health endpoint."""

from dataclasses import dataclass, field
from threading import Lock

from app.utils.helpers import iso_now


@dataclass
class CacheStatistics:
    """Counters for cache-aside reads and namespace invalidations."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    invalidations: int = 0
    created_at: str = field(default_factory=iso_now)
    _lock: Lock = field(default_factory=Lock, init=False, repr=False)

    def record_hit(self) -> None:
        with self._lock:
            self.hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self.misses += 1

    def record_set(self) -> None:
        with self._lock:
            self.sets += 1

    def record_invalidation(self) -> None:
        with self._lock:
            self.invalidations += 1

    @property
    def hit_rate(self) -> float:
        """Share of reads served from cache, as a percentage."""
        total = self.hits + self.misses
        return round(self.hits / total * 100, 2) if total else 0.0

    def reset(self) -> None:
        """Zero every counter."""
        with self._lock:
            self.hits = self.misses = self.sets = self.invalidations = 0
            self.created_at = iso_now()

    def to_dict(self) -> dict[str, int | float | str]:
        """Snapshot of the counters."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "invalidations": self.invalidations,
            "hit_rate": self.hit_rate,
            "since": self.created_at,
        }
