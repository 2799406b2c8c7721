"""In-memory response cache."""

import copy
import logging
from typing import Any

from clinical_resolver.core.interfaces import Cache
from clinical_resolver.models.query import QueryType

logger = logging.getLogger(__name__)


class InMemoryCache(Cache):
    """Dict-backed cache namespaced by query type. Entries never expire."""

    def __init__(self):
        self._store: dict[tuple[str, str], dict[str, Any]] = {}
        self.hits = 0
        self.misses = 0
        self.writes = 0

    @staticmethod
    def _slot(key: str, query_type: QueryType | str) -> tuple[str, str]:
        return (getattr(query_type, "value", str(query_type)), key)

    async def get(self, key: str, query_type: QueryType) -> dict[str, Any] | None:
        value = self._store.get(self._slot(key, query_type))
        if value is None:
            self.misses += 1
            return None

        self.hits += 1
        # Callers must not be able to mutate the stored payload
        return copy.deepcopy(value)

    async def set(self, key: str, value: dict[str, Any], query_type: QueryType) -> None:
        self._store[self._slot(key, query_type)] = copy.deepcopy(value)
        self.writes += 1
        logger.debug(f"Cached response under {key}")

    def clear(self) -> None:
        """Drop every cached entry."""
        self._store.clear()
        logger.info("Cache cleared")

    def get_stats(self) -> dict[str, Any]:
        """Hit/miss statistics.

        Returns:
            Dict with size, hits, misses, writes and hit rate
        """
        lookups = self.hits + self.misses
        return {
            "size": len(self._store),
            "hits": self.hits,
            "misses": self.misses,
            "writes": self.writes,
            "hit_rate_pct": round(self.hits / lookups * 100, 2) if lookups else 0.0,
        }

    def __len__(self) -> int:
        return len(self._store)
