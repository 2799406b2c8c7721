"""In-memory feedback store."""

import logging
from collections import defaultdict

from clinical_resolver.core.interfaces import FeedbackSystem
from clinical_resolver.models.query import FeedbackEntry

logger = logging.getLogger(__name__)


class InMemoryFeedbackStore(FeedbackSystem):
    """Keeps feedback entries grouped by query id."""

    def __init__(self):
        self._feedback: dict[str, list[FeedbackEntry]] = defaultdict(list)

    async def submit_feedback(self, entry: FeedbackEntry) -> None:
        self._feedback[entry.query_id].append(entry)
        logger.debug(f"Stored feedback {entry.id} for {entry.query_id}")

    def get_feedback(self, query_id: str) -> list[FeedbackEntry]:
        return list(self._feedback.get(query_id, []))

    def average_rating(self, query_id: str) -> float:
        """Mean rating of a query, 0.0 when unrated."""
        entries = self._feedback.get(query_id)
        if not entries:
            return 0.0
        return sum(e.rating for e in entries) / len(entries)

    def count(self) -> int:
        return sum(len(entries) for entries in self._feedback.values())
