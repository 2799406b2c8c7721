"""Query resolution, feedback and statistics endpoints."""

import logging
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from clinical_resolver.core.orchestrator import QueryResolutionOrchestrator
from clinical_resolver.lib.errors import InputValidationError
from clinical_resolver.models.query import AIQuery

from ..models.errors import invalid_request_error, server_error
from ..models.query import FeedbackRequest, FeedbackResponse, QueryRequest, QueryResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_orchestrator(request: Request) -> QueryResolutionOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=503,
            detail=server_error("Resolver is not initialized").model_dump(),
        )
    return orchestrator


@router.post("/v1/query")
async def resolve_query(body: QueryRequest, request: Request):
    """Resolve a clinical query at the cheapest tier able to answer it.

    Returns:
        QueryResponse, with source and cost also exposed as headers
    """
    orchestrator = _get_orchestrator(request)

    query = AIQuery(
        text=body.text,
        type=body.type,
        context=body.context,
        user_id=body.user_id,
        priority=body.priority,
    )

    try:
        response = await orchestrator.process_query(query)
    except InputValidationError as e:
        logger.warning(f"Invalid query: {e}")
        raise HTTPException(
            status_code=400, detail=invalid_request_error(str(e), param=e.field).model_dump()
        )

    result = QueryResponse(query_id=f"query_{uuid.uuid4().hex[:12]}", **response.to_dict())

    return JSONResponse(
        content=result.model_dump(),
        headers={
            "X-Resolution-Source": response.source.value,
            "X-Cost": str(response.cost if response.cost is not None else 0.0),
        },
    )


@router.post("/v1/feedback", response_model=FeedbackResponse)
async def submit_feedback(body: FeedbackRequest, request: Request) -> FeedbackResponse:
    """Record a user rating for a delivered response."""
    orchestrator = _get_orchestrator(request)

    try:
        entry = await orchestrator.submit_feedback(
            query_id=body.query_id,
            rating=body.rating,
            comment=body.comment,
            user_id=body.user_id,
        )
    except InputValidationError as e:
        logger.warning(f"Invalid feedback: {e}")
        raise HTTPException(
            status_code=400, detail=invalid_request_error(str(e), param=e.field).model_dump()
        )

    if entry is None:
        return FeedbackResponse(status="not_recorded")
    return FeedbackResponse(status="recorded", feedback_id=entry.id)


@router.get("/v1/stats")
async def get_stats(request: Request) -> dict[str, Any]:
    """Resolution metrics plus collaborator statistics."""
    orchestrator = _get_orchestrator(request)
    return await orchestrator.get_system_stats()
