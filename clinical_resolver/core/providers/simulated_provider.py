"""Deterministic provider client standing in for paid AI vendors."""

import asyncio
import logging
from typing import Dict, Optional

from clinical_resolver.core.interfaces import Account, ProviderClient, ProviderResult

logger = logging.getLogger(__name__)

DEFAULT_COST = 0.03
DEFAULT_CONFIDENCE = 0.85
QUOTE_LENGTH = 50


class SimulatedProviderClient(ProviderClient):
    """Answers from fixed templates with a configurable cost per provider."""

    TEMPLATES = (
        'Based on the question "{quote}", the recommended approach is: '
        "1) complete initial assessment, 2) define therapeutic goals, "
        "3) apply condition-specific techniques and reassess progress.",
        'For "{quote}", a multidisciplinary approach considering the '
        "biomechanical and neurophysiological factors involved is advised.",
        'Regarding "{quote}", weigh the clinical history, functional '
        "limitations and patient goals before choosing an intervention.",
    )

    def __init__(
        self,
        costs: Optional[Dict[str, float]] = None,
        confidence: float = DEFAULT_CONFIDENCE,
        latency_seconds: float = 0.0,
    ):
        """Initialize simulated client.

        Args:
            costs: Cost per call keyed by provider id
            confidence: Confidence reported on every answer
            latency_seconds: Artificial delay per call
        """
        self.costs = costs or {}
        self.confidence = confidence
        self.latency_seconds = latency_seconds
        self.failing_providers: set[str] = set()
        self.call_count = 0

    def fail_provider(self, provider_id: str, failing: bool = True) -> None:
        """Make calls through a provider raise (or stop raising)."""
        if failing:
            self.failing_providers.add(provider_id)
        else:
            self.failing_providers.discard(provider_id)

    async def call(self, account: Account, query_text: str) -> ProviderResult:
        self.call_count += 1

        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)

        if account.provider_id in self.failing_providers:
            raise ConnectionError(f"{account.provider} is unreachable")

        quote = query_text.strip()
        if len(quote) > QUOTE_LENGTH:
            quote = quote[:QUOTE_LENGTH] + "..."

        # Stable template choice so repeated queries get repeated answers
        template = self.TEMPLATES[sum(map(ord, query_text)) % len(self.TEMPLATES)]

        logger.debug(f"Simulated {account.provider} call via {account.account_id}")
        return ProviderResult(
            text=template.format(quote=quote),
            confidence=self.confidence,
            cost=self.costs.get(account.provider_id, DEFAULT_COST),
        )
