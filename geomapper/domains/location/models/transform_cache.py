"""
Bounded memo of GPS -> map transformations.

Keys are quantized coordinates stored as an integer pair, so two readings
that agree to `precision` decimals share one entry. Eviction is by insertion
order (oldest inserted first).
"""

import logging
from typing import Any, Dict, Optional, Tuple

from geomapper.domains.location.entities.position import MapPosition

logger = logging.getLogger(__name__)

CacheKey = Tuple[int, int]


class TransformCache:

    def __init__(self, max_size: int = 100, precision: int = 5):
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        self.precision = precision
        self._scale = 10 ** precision
        self._entries: Dict[CacheKey, MapPosition] = {}
        self.cache_stats = {"hits": 0, "misses": 0, "evictions": 0, "pruned": 0}

    def make_key(self, lat: float, lng: float) -> CacheKey:
        return (round(lat * self._scale), round(lng * self._scale))

    def get(self, lat: float, lng: float) -> Optional[MapPosition]:
        result = self._entries.get(self.make_key(lat, lng))
        if result is None:
            self.cache_stats["misses"] += 1
        else:
            self.cache_stats["hits"] += 1
        return result

    def put(self, lat: float, lng: float, position: MapPosition) -> None:
        key = self.make_key(lat, lng)
        if key not in self._entries and len(self._entries) >= self.max_size:
            oldest_key = next(iter(self._entries))
            del self._entries[oldest_key]
            self.cache_stats["evictions"] += 1
        self._entries[key] = position

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> Tuple[CacheKey, ...]:
        return tuple(self._entries)

    def clear(self) -> None:
        if self._entries:
            logger.debug(f"Transform cache cleared ({len(self._entries)} entries)")
        self._entries.clear()

    def prune(self, threshold: float = 0.8, fraction: float = 0.3) -> int:
        """
        Drop the oldest `fraction` of entries when fill exceeds `threshold` of capacity.

        Returns:
            Number of entries removed.
        """
        if len(self._entries) <= self.max_size * threshold:
            return 0
        to_remove = int(len(self._entries) * fraction)
        for key in list(self._entries)[:to_remove]:
            del self._entries[key]
        self.cache_stats["pruned"] += to_remove
        logger.debug(f"Transform cache pruned {to_remove} entries, {len(self._entries)} remain")
        return to_remove

    def get_stats(self) -> Dict[str, Any]:
        lookups = self.cache_stats["hits"] + self.cache_stats["misses"]
        return {
            **self.cache_stats,
            "size": len(self._entries),
            "max_size": self.max_size,
            "hit_rate": self.cache_stats["hits"] / max(1, lookups),
        }
