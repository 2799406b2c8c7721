"""Routing table from query type to premium provider."""

from enum import Enum

from clinical_resolver.models.query import QueryType


class ProviderId(str, Enum):
    """Logical premium provider identifiers."""

    PROVIDER_A = "ProviderA"  # long-form protocols and treatment plans
    PROVIDER_B = "ProviderB"  # diagnostic reasoning
    PROVIDER_C = "ProviderC"  # general purpose
    PROVIDER_D = "ProviderD"  # literature research


DEFAULT_PROVIDER = ProviderId.PROVIDER_C

PROVIDER_ROUTES: dict[QueryType, ProviderId] = {
    QueryType.PROTOCOL: ProviderId.PROVIDER_A,
    QueryType.TREATMENT: ProviderId.PROVIDER_A,
    QueryType.DIAGNOSIS: ProviderId.PROVIDER_B,
    QueryType.EXERCISE: ProviderId.PROVIDER_C,
    QueryType.GENERAL: ProviderId.PROVIDER_C,
    QueryType.RESEARCH: ProviderId.PROVIDER_D,
}

_unrouted = set(QueryType) - set(PROVIDER_ROUTES)
if _unrouted:
    raise RuntimeError(f"Query types without a provider route: {sorted(t.value for t in _unrouted)}")


def select_provider(query_type: QueryType | str) -> ProviderId:
    """Select the premium provider for a query type.

    Args:
        query_type: Query type, as enum or raw string

    Returns:
        Provider id (ProviderC for unknown types)
    """
    try:
        return PROVIDER_ROUTES.get(QueryType(query_type), DEFAULT_PROVIDER)
    except ValueError:
        return DEFAULT_PROVIDER
