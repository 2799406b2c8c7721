"""Pytest configuration and shared fixtures for the test suite.

Provides:
- Custom marker registration
- Sample knowledge entries and in-memory collaborators
"""

import pytest

from clinical_resolver.core.orchestrator import QueryResolutionOrchestrator
from clinical_resolver.core.providers.simulated_provider import SimulatedProviderClient
from clinical_resolver.models.knowledge import KnowledgeEntry
from clinical_resolver.storage.account_pool import AccountPool, AccountQuota
from clinical_resolver.storage.cache_store import InMemoryCache
from clinical_resolver.storage.feedback_store import InMemoryFeedbackStore
from clinical_resolver.storage.knowledge_store import InMemoryKnowledgeBase


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")


@pytest.fixture
def tendinitis_entry():
    """Entry that scores 0.825 for "tendinite patelar" without boosts."""
    return KnowledgeEntry(
        id="kb-tendinite",
        title="Tendinite Patelar",
        content="Tendinite patelar em atletas de salto.",
        diagnosis="Tendinite patelar",
        symptoms=["tendinite"],
        techniques=["exercicio excentrico", "crioterapia"],
        precautions=["evitar saltos na fase aguda"],
        tags=["tendinite"],
        confidence=1.0,
    )


@pytest.fixture
def low_back_entry():
    """Title-only entry that scores 0.27 for "dor lombar"."""
    return KnowledgeEntry(id="kb-lombar", title="Dor Lombar Cronica", confidence=0.9)


@pytest.fixture
def account_pool():
    return AccountPool(
        [
            AccountQuota("a-1", "ProviderA", "ProviderA", request_limit=10),
            AccountQuota("b-1", "ProviderB", "ProviderB", request_limit=10),
            AccountQuota("c-1", "ProviderC", "ProviderC", request_limit=10),
            AccountQuota("d-1", "ProviderD", "ProviderD", request_limit=10),
        ]
    )


@pytest.fixture
def provider_client():
    return SimulatedProviderClient(costs={"ProviderA": 0.04, "ProviderC": 0.02})


@pytest.fixture
def build_orchestrator(account_pool, provider_client):
    """Factory building an orchestrator around the given entries."""

    def _build(entries=None, **overrides):
        components = {
            "knowledge_base": InMemoryKnowledgeBase(entries or []),
            "cache": InMemoryCache(),
            "account_manager": account_pool,
            "provider_client": provider_client,
            "feedback_system": InMemoryFeedbackStore(),
        }
        components.update(overrides)
        return QueryResolutionOrchestrator(**components)

    return _build
