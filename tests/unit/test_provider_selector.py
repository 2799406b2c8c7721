"""Tests for query type to provider routing."""

import pytest

from clinical_resolver.core.provider_selector import (
    DEFAULT_PROVIDER,
    PROVIDER_ROUTES,
    ProviderId,
    select_provider,
)
from clinical_resolver.models.query import QueryType

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "query_type,expected",
    [
        (QueryType.PROTOCOL, ProviderId.PROVIDER_A),
        (QueryType.TREATMENT, ProviderId.PROVIDER_A),
        (QueryType.DIAGNOSIS, ProviderId.PROVIDER_B),
        (QueryType.EXERCISE, ProviderId.PROVIDER_C),
        (QueryType.GENERAL, ProviderId.PROVIDER_C),
        (QueryType.RESEARCH, ProviderId.PROVIDER_D),
    ],
)
def test_routes(query_type, expected):
    assert select_provider(query_type) == expected


def test_every_type_is_routed():
    assert set(PROVIDER_ROUTES) == set(QueryType)


def test_raw_strings_and_unknown_types():
    assert select_provider("diagnosis") == ProviderId.PROVIDER_B
    assert select_provider("astrology") == DEFAULT_PROVIDER


def test_provider_id_values():
    assert select_provider(QueryType.RESEARCH).value == "ProviderD"
