"""Factory for wiring the orchestrator and its reference collaborators from configuration."""

import logging

from clinical_resolver.core.orchestrator import QueryResolutionOrchestrator
from clinical_resolver.core.providers.simulated_provider import SimulatedProviderClient
from clinical_resolver.lib.config import ConfigLoader
from clinical_resolver.lib.errors import ConfigurationError
from clinical_resolver.storage.account_pool import AccountPool
from clinical_resolver.storage.cache_store import InMemoryCache
from clinical_resolver.storage.feedback_store import InMemoryFeedbackStore
from clinical_resolver.storage.knowledge_store import InMemoryKnowledgeBase

logger = logging.getLogger(__name__)


def build_orchestrator(config: ConfigLoader | None = None) -> QueryResolutionOrchestrator:
    """Create an orchestrator backed by the in-memory collaborators.

    Reads the ``accounts`` and ``provider_costs`` sections of resolver.yaml
    and seeds the knowledge base from the configured seed file.

    Args:
        config: Loaded configuration (defaults to ``ConfigLoader()``)

    Returns:
        Ready-to-use QueryResolutionOrchestrator

    Raises:
        ConfigurationError: If an account or cost entry is malformed
    """
    config = config or ConfigLoader()

    knowledge_base = InMemoryKnowledgeBase.from_yaml(
        config.get_env("seed_file"),
        fuzzy_threshold=config.settings.ranker.fuzzy_term_threshold,
    )

    accounts = config.raw.get("accounts") or []
    try:
        account_pool = AccountPool.from_config(accounts)
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid accounts section: {e}") from e

    try:
        costs = {
            provider_id: float(cost)
            for provider_id, cost in config.get_section("provider_costs").items()
        }
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid provider_costs section: {e}") from e

    orchestrator = QueryResolutionOrchestrator(
        knowledge_base=knowledge_base,
        cache=InMemoryCache(),
        account_manager=account_pool,
        provider_client=SimulatedProviderClient(costs=costs),
        feedback_system=InMemoryFeedbackStore(),
        settings=config.settings,
    )

    logger.info(
        f"Orchestrator ready: {len(knowledge_base)} knowledge entries, "
        f"{len(accounts)} premium accounts"
    )
    return orchestrator
