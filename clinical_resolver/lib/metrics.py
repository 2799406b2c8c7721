"""Resolution metrics: where answers came from and what they cost."""

import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


@dataclass
class ResolutionRecord:
    """Metrics for a single resolved query."""

    query_type: str
    source: str
    timestamp: datetime
    response_time_ms: float
    confidence: float
    cost: float
    provider: str | None = None
    error: bool = False


class MetricsCollector:
    """Collects and aggregates resolution metrics."""

    def __init__(self, max_history: int = 1000, savings_per_free_answer: float = 0.003):
        """Initialize metrics collector.

        Args:
            max_history: Maximum number of records to keep in history
            savings_per_free_answer: Estimated USD saved per answer not paid for
        """
        self.max_history = max_history
        self.savings_per_free_answer = savings_per_free_answer
        self.history: deque[ResolutionRecord] = deque(maxlen=max_history)

        self.total_queries = 0
        self.total_cost = 0.0
        self.total_response_time_ms = 0.0
        self.estimated_savings = 0.0
        self.error_count = 0

        self.queries_by_source: Dict[str, int] = defaultdict(int)
        self.queries_by_type: Dict[str, int] = defaultdict(int)
        self.queries_by_provider: Dict[str, int] = defaultdict(int)

    def record(self, record: ResolutionRecord) -> None:
        """Record one resolution.

        Args:
            record: ResolutionRecord instance
        """
        self.history.append(record)

        self.total_queries += 1
        # A cache hit carries the cost of its original premium call
        if record.source != "cache":
            self.total_cost += record.cost
        self.total_response_time_ms += record.response_time_ms

        self.queries_by_source[record.source] += 1
        self.queries_by_type[record.query_type] += 1
        if record.provider:
            self.queries_by_provider[record.provider] += 1

        if record.error:
            self.error_count += 1
        elif record.source == "cache":
            self.estimated_savings += record.cost or self.savings_per_free_answer
        elif record.source != "premium_ai":
            self.estimated_savings += self.savings_per_free_answer

    def get_summary(self) -> Dict[str, Any]:
        """Get summary of all metrics.

        Returns:
            Dict with aggregated metrics
        """
        if self.total_queries == 0:
            return {
                "total_queries": 0,
                "message": "No queries recorded yet",
            }

        cache_hits = self.queries_by_source.get("cache", 0)

        return {
            "total_queries": self.total_queries,
            "total_cost": round(self.total_cost, 4),
            "estimated_savings": round(self.estimated_savings, 4),
            "avg_response_time_ms": round(self.total_response_time_ms / self.total_queries, 2),
            "cache_hit_rate_pct": round(cache_hits / self.total_queries * 100, 2),
            "error_rate_pct": round(self.error_count / self.total_queries * 100, 2),
            "source_distribution": dict(self.queries_by_source),
            "type_distribution": dict(self.queries_by_type),
            "provider_usage": dict(self.queries_by_provider),
        }

    def get_recent(self, count: int = 10) -> List[Dict[str, Any]]:
        """Get recent resolution records.

        Args:
            count: Number of recent records to return

        Returns:
            List of record dicts
        """
        recent = list(self.history)[-count:]
        return [
            {
                "timestamp": r.timestamp.isoformat(),
                "type": r.query_type,
                "source": r.source,
                "response_time_ms": round(r.response_time_ms, 2),
                "confidence": round(r.confidence, 3),
                "cost": round(r.cost, 6),
                "provider": r.provider,
                "error": r.error,
            }
            for r in recent
        ]

    def reset(self) -> None:
        """Reset all metrics."""
        self.history.clear()
        self.total_queries = 0
        self.total_cost = 0.0
        self.total_response_time_ms = 0.0
        self.estimated_savings = 0.0
        self.error_count = 0
        self.queries_by_source.clear()
        self.queries_by_type.clear()
        self.queries_by_provider.clear()

        logger.info("Metrics reset")


def now_utc() -> datetime:
    """Current UTC time."""
    return datetime.now(UTC)
