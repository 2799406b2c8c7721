"""Health check models."""

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

CollaboratorState = Literal["healthy", "unhealthy", "unknown"]


class ServiceStatus(BaseModel):
    """Health of one orchestrator collaborator."""

    name: str
    status: CollaboratorState
    message: str = ""
    details: dict[str, Any] = Field(default_factory=dict)


class HealthStatus(BaseModel):
    """Overall health, degraded when only some collaborators are healthy."""

    status: Literal["healthy", "degraded", "unhealthy"]
    services: dict[str, ServiceStatus]
    version: str = "0.1.0"
    checked_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
