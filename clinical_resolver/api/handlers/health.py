"""Health check endpoint handler."""

import logging

from clinical_resolver.core.orchestrator import QueryResolutionOrchestrator

from ..models.health import HealthStatus, ServiceStatus

logger = logging.getLogger(__name__)


async def check_health(orchestrator: QueryResolutionOrchestrator | None) -> HealthStatus:
    """Check health of the orchestrator and its collaborators.

    Args:
        orchestrator: Orchestrator from app state (None if startup failed)

    Returns:
        HealthStatus with service statuses
    """
    services = {}

    if orchestrator is None:
        services["orchestrator"] = ServiceStatus(
            name="orchestrator",
            status="unhealthy",
            message="Orchestrator not initialized",
        )
        return HealthStatus(status="unhealthy", services=services)

    services["orchestrator"] = ServiceStatus(
        name="orchestrator",
        status="healthy",
        message="Orchestrator initialized",
    )

    # Check knowledge base
    try:
        kb_stats = orchestrator.knowledge_base.get_stats()
        total = kb_stats.get("total_entries", 0)
        services["knowledge_base"] = ServiceStatus(
            name="knowledge_base",
            status="healthy" if total else "unhealthy",
            message=f"{total} entries loaded" if total else "Knowledge base is empty",
            details=kb_stats,
        )
    except AttributeError:
        services["knowledge_base"] = ServiceStatus(
            name="knowledge_base", status="unknown", message="No stats available"
        )
    except Exception as e:
        services["knowledge_base"] = ServiceStatus(
            name="knowledge_base",
            status="unhealthy",
            message=f"Knowledge base error: {str(e)}",
        )

    # Check premium accounts
    try:
        usage = orchestrator.account_manager.get_usage_stats()
        available = [
            account_id
            for account_id, stats in usage.items()
            if stats.get("active", True) and stats.get("remaining", 1) > 0
        ]
        services["accounts"] = ServiceStatus(
            name="premium_accounts",
            status="healthy" if available else "unhealthy",
            message=f"{len(available)} of {len(usage)} accounts available",
            details={"available": available},
        )
    except Exception as e:
        services["accounts"] = ServiceStatus(
            name="premium_accounts",
            status="unhealthy",
            message=f"Account manager error: {str(e)}",
        )

    # Determine overall health
    statuses = [s.status for s in services.values()]

    if all(s == "healthy" for s in statuses):
        overall_status = "healthy"
    elif all(s == "unhealthy" for s in statuses):
        overall_status = "unhealthy"
    else:
        overall_status = "degraded"

    logger.info(f"Health check: {overall_status}")

    return HealthStatus(status=overall_status, services=services)
