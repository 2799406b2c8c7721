"""Request and response schemas for the resolution endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from clinical_resolver.models.query import QueryPriority, QueryType

# ============================================================================
# Request Models
# ============================================================================


class QueryRequest(BaseModel):
    """Clinical query submission."""

    text: str
    type: QueryType = QueryType.GENERAL
    context: dict[str, Any] | None = None
    user_id: str | None = None
    priority: QueryPriority | None = None


class FeedbackRequest(BaseModel):
    """Rating of a previously delivered response."""

    query_id: str
    rating: int
    comment: str | None = None
    user_id: str | None = None


# ============================================================================
# Response Models
# ============================================================================


class QueryResponse(BaseModel):
    """Resolved answer with provenance."""

    query_id: str
    text: str
    source: str
    confidence: float = Field(ge=0.0, le=1.0)
    references: list[str] = Field(default_factory=list)
    cost: float | None = None
    provider: str | None = None
    response_time: float = 0.0


class FeedbackResponse(BaseModel):
    """Feedback acknowledgement."""

    status: str
    feedback_id: str | None = None
