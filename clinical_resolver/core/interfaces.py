"""Collaborator interfaces the resolution engine depends on."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from clinical_resolver.models.knowledge import KnowledgeEntry
from clinical_resolver.models.query import FeedbackEntry, QueryType


@dataclass(frozen=True)
class Account:
    """A reserved premium account."""

    account_id: str
    provider_id: str
    provider: str  # display name reported on responses


@dataclass(frozen=True)
class ProviderResult:
    """Standardized premium provider answer."""

    text: str
    confidence: float
    cost: float


class KnowledgeBase(ABC):
    """Source of candidate knowledge entries."""

    @abstractmethod
    async def search_entries(self, text: str) -> list[KnowledgeEntry]:
        """Prefilter entries for a query.

        No ranking obligation; returning a superset is allowed.

        Args:
            text: Raw query text

        Returns:
            Candidate entries
        """


class Cache(ABC):
    """Key-value store for resolved responses. TTL and eviction are opaque."""

    @abstractmethod
    async def get(self, key: str, query_type: QueryType) -> dict[str, Any] | None:
        """Look up a cached payload.

        Args:
            key: Cache key
            query_type: Query type namespace

        Returns:
            Cached payload or None on miss
        """

    @abstractmethod
    async def set(self, key: str, value: dict[str, Any], query_type: QueryType) -> None:
        """Store a payload.

        Args:
            key: Cache key
            value: Payload to store
            query_type: Query type namespace
        """


class AccountManager(ABC):
    """Owner of premium account quotas.

    Implementations must make reservation atomic: two concurrent callers may
    not both receive the last unit of an account's quota.
    """

    @abstractmethod
    async def select_best_account(self, provider_id: str) -> Account | None:
        """Reserve an account for a provider.

        Args:
            provider_id: Logical provider id

        Returns:
            Reserved account or None if none is available
        """

    @abstractmethod
    def get_usage_stats(self) -> dict[str, Any]:
        """Read-only usage statistics."""


class ProviderClient(ABC):
    """Calls a premium AI provider."""

    @abstractmethod
    async def call(self, account: Account, query_text: str) -> ProviderResult:
        """Send a query to the provider behind an account.

        Args:
            account: Reserved account
            query_text: Query text

        Returns:
            ProviderResult

        Raises:
            Exception: Any failure; the caller treats it as a provider error
        """


class FeedbackSystem(ABC):
    """Sink for user ratings of delivered responses."""

    @abstractmethod
    async def submit_feedback(self, entry: FeedbackEntry) -> None:
        """Record a feedback entry."""
