"""Query model for clinical question representation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class QueryType(str, Enum):
    """Closed set of clinical query types."""

    PROTOCOL = "protocol"
    DIAGNOSIS = "diagnosis"
    EXERCISE = "exercise"
    GENERAL = "general"
    RESEARCH = "research"
    TREATMENT = "treatment"


class QueryPriority(str, Enum):
    """Caller-declared urgency. Informational only."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class AIQuery:
    """A natural-language clinical query submitted for resolution."""

    text: str
    type: QueryType = QueryType.GENERAL
    context: dict[str, Any] | None = None
    user_id: str | None = None
    priority: QueryPriority | None = None

    def is_blank(self) -> bool:
        """Check if the query carries no text.

        Returns:
            True if text is empty or whitespace only
        """
        return not self.text or not self.text.strip()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging.

        Returns:
            Dict representation
        """
        return {
            "text_length": len(self.text or ""),
            "type": getattr(self.type, "value", self.type),
            "user_id": self.user_id,
            "priority": getattr(self.priority, "value", self.priority),
        }


@dataclass(frozen=True)
class FeedbackEntry:
    """User rating of a delivered response."""

    id: str
    query_id: str
    user_id: str
    rating: int
    comment: str | None = None
    timestamp: str = field(default="")
