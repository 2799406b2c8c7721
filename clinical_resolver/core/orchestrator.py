"""Tiered query resolution: knowledge base, then cache, then premium AI."""

import logging
import time
import uuid
from typing import Any

from clinical_resolver.core.cache_key import generate_cache_key
from clinical_resolver.core.interfaces import (
    AccountManager,
    Cache,
    FeedbackSystem,
    KnowledgeBase,
    ProviderClient,
)
from clinical_resolver.core.provider_selector import select_provider
from clinical_resolver.core.relevance_ranker import RelevanceRanker
from clinical_resolver.lib.config import ResolverSettings
from clinical_resolver.lib.errors import (
    InputValidationError,
    ProviderCallError,
    ProviderUnavailableError,
    TierMissError,
)
from clinical_resolver.lib.logger import log_event
from clinical_resolver.lib.metrics import MetricsCollector, ResolutionRecord, now_utc
from clinical_resolver.models.knowledge import KnowledgeEntry, SearchQuery
from clinical_resolver.models.query import AIQuery, FeedbackEntry, QueryType
from clinical_resolver.models.response import AIResponse, ResponseSource

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def _type_name(query_type: QueryType | str) -> str:
    return query_type.value if isinstance(query_type, QueryType) else str(query_type)


class QueryResolutionOrchestrator:
    """Resolves clinical queries through progressively more expensive tiers.

    Tiers run strictly one after another. A premium provider is only paid for
    once both free tiers have missed.
    """

    def __init__(
        self,
        knowledge_base: KnowledgeBase,
        cache: Cache,
        account_manager: AccountManager,
        provider_client: ProviderClient,
        feedback_system: FeedbackSystem | None = None,
        settings: ResolverSettings | None = None,
        ranker: RelevanceRanker | None = None,
        metrics: MetricsCollector | None = None,
        event_logger: logging.Logger | None = None,
    ):
        """Initialize orchestrator.

        Args:
            knowledge_base: Candidate entry source
            cache: Response cache
            account_manager: Premium account reservation
            provider_client: Premium provider caller
            feedback_system: Optional sink for user feedback
            settings: Pipeline settings (defaults if omitted)
            ranker: Relevance ranker (built from settings if omitted)
            metrics: Metrics collector (created if omitted)
            event_logger: Logger receiving tier events (module logger if omitted)
        """
        self.knowledge_base = knowledge_base
        self.cache = cache
        self.account_manager = account_manager
        self.provider_client = provider_client
        self.feedback_system = feedback_system
        self.settings = settings or ResolverSettings()
        self.ranker = ranker or RelevanceRanker(self.settings.ranker)
        self.metrics = metrics or MetricsCollector(
            max_history=self.settings.metrics_history,
            savings_per_free_answer=self.settings.savings_per_free_answer,
        )
        self.events = event_logger or logger

    async def process_query(self, query: AIQuery) -> AIResponse:
        """Resolve a query at the cheapest tier able to answer it.

        Flow:
        1. Knowledge base (accepted only above the trust threshold)
        2. Cache
        3. Premium provider, written through to the cache
        4. Degraded fallback when no premium account or call succeeds

        Args:
            query: Clinical query

        Returns:
            AIResponse tagged with the tier that produced it

        Raises:
            InputValidationError: If the query text is blank
        """
        if query is None or query.is_blank():
            raise InputValidationError()

        start_time = time.perf_counter()
        failed = False
        self._emit(logging.INFO, "query_received", **query.to_dict())

        try:
            response = await self._resolve(query)
        except Exception as e:
            failed = True
            self._emit(
                logging.ERROR,
                "query_failed",
                exc_info=True,
                type=_type_name(query.type),
                error=str(e),
            )
            response = AIResponse(
                text=self.settings.error_message,
                source=ResponseSource.KNOWLEDGE_BASE,
                confidence=self.settings.error_confidence,
            )

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        response = response.with_updates(response_time=elapsed_ms)
        self._record(query, response, failed)

        self._emit(
            logging.INFO,
            "query_resolved",
            source=response.source.value,
            confidence=round(response.confidence, 3),
            response_time_ms=round(elapsed_ms, 2),
            cost=response.cost,
        )
        return response

    async def _resolve(self, query: AIQuery) -> AIResponse:
        knowledge_response = await self._search_knowledge_base(query)
        if knowledge_response is not None:
            return knowledge_response

        cache_key = generate_cache_key(query.text, query.type)

        cached_response = await self._search_cache(query, cache_key)
        if cached_response is not None:
            return cached_response

        return await self._query_premium(query, cache_key)

    async def _search_knowledge_base(self, query: AIQuery) -> AIResponse | None:
        """KB_LOOKUP tier. Returns None on miss."""
        try:
            candidates = await self.knowledge_base.search_entries(query.text)
            if not candidates:
                raise TierMissError("knowledge_base", "no candidates")

            results = self.ranker.search(
                SearchQuery(
                    text=query.text,
                    category=_type_name(query.type),
                    limit=self.settings.kb_search_limit,
                ),
                candidates,
            )
            if not results:
                raise TierMissError("knowledge_base", "no relevant results")

            best = results[0]
            if best.score < self.settings.trust_threshold:
                raise TierMissError(
                    "knowledge_base",
                    f"best score {best.score:.3f} below trust threshold "
                    f"{self.settings.trust_threshold}",
                )
        except TierMissError as miss:
            self._emit(logging.DEBUG, "tier_miss", tier=miss.tier, reason=miss.reason)
            return None
        except Exception as e:
            self._emit(logging.WARNING, "tier_error", exc_info=True, tier="knowledge_base", error=str(e))
            return None

        self._emit(logging.INFO, "tier_hit", tier="knowledge_base", entry_id=best.entry.id, score=round(best.score, 3))
        return AIResponse(
            text=self.format_knowledge_response(best.entry),
            source=ResponseSource.KNOWLEDGE_BASE,
            confidence=best.score,
            references=[best.entry.title],
            cost=0.0,
        )

    async def _search_cache(self, query: AIQuery, cache_key: str) -> AIResponse | None:
        """CACHE_LOOKUP tier. Returns None on miss."""
        try:
            payload = await self.cache.get(cache_key, query.type)
            if payload is None:
                raise TierMissError("cache", f"no entry for {cache_key}")

            cached = payload if isinstance(payload, AIResponse) else AIResponse.from_dict(payload)
        except TierMissError as miss:
            self._emit(logging.DEBUG, "tier_miss", tier=miss.tier, reason=miss.reason)
            return None
        except Exception as e:
            self._emit(logging.WARNING, "tier_error", exc_info=True, tier="cache", error=str(e))
            return None

        self._emit(logging.INFO, "tier_hit", tier="cache", cache_key=cache_key)
        return cached.with_updates(source=ResponseSource.CACHE)

    async def _query_premium(self, query: AIQuery, cache_key: str) -> AIResponse:
        """PREMIUM_LOOKUP tier. Always produces a response."""
        provider_id = select_provider(query.type)

        try:
            account = await self.account_manager.select_best_account(provider_id.value)
            if account is None:
                raise ProviderUnavailableError(provider_id.value)

            try:
                result = await self.provider_client.call(account, query.text)
            except Exception as e:
                raise ProviderCallError(account.provider, e) from e

            if not result or not result.text:
                raise ProviderCallError(account.provider)

            response = AIResponse(
                text=result.text,
                source=ResponseSource.PREMIUM_AI,
                confidence=result.confidence,
                cost=result.cost,
                provider=account.provider,
            )
        except ProviderUnavailableError as e:
            self._emit(logging.WARNING, "premium_unavailable", provider_id=e.provider_id, type=_type_name(query.type))
            return self._fallback_response()
        except Exception as e:
            self._emit(logging.ERROR, "premium_failed", exc_info=True, provider_id=provider_id.value, error=str(e))
            return self._fallback_response()

        try:
            await self.cache.set(cache_key, response.to_dict(), query.type)
        except Exception as e:
            self._emit(logging.WARNING, "cache_write_failed", exc_info=True, cache_key=cache_key, error=str(e))

        self._emit(
            logging.INFO,
            "tier_hit",
            tier="premium_ai",
            provider=account.provider,
            account_id=account.account_id,
            cost=result.cost,
        )
        return response

    def _fallback_response(self) -> AIResponse:
        return AIResponse(
            text=self.settings.fallback_message,
            source=ResponseSource.KNOWLEDGE_BASE,
            confidence=self.settings.fallback_confidence,
        )

    def format_knowledge_response(self, entry: KnowledgeEntry) -> str:
        """Render a knowledge entry as a markdown answer.

        Args:
            entry: Accepted knowledge entry

        Returns:
            Formatted answer text
        """
        sections = [f"**{entry.title}**"]

        if entry.content:
            sections.append(entry.content)

        if entry.techniques:
            bullets = "\n".join(f"• {t}" for t in entry.techniques)
            sections.append(f"**Recommended techniques:**\n{bullets}")

        if entry.precautions:
            bullets = "\n".join(f"• {p}" for p in entry.precautions)
            sections.append(f"**Precautions:**\n{bullets}")

        sections.append(self.settings.knowledge_base_footer)
        return "\n\n".join(sections)

    def _record(self, query: AIQuery, response: AIResponse, failed: bool) -> None:
        try:
            self.metrics.record(
                ResolutionRecord(
                    query_type=_type_name(query.type),
                    source=response.source.value,
                    timestamp=now_utc(),
                    response_time_ms=response.response_time,
                    confidence=response.confidence,
                    cost=response.cost or 0.0,
                    provider=response.provider,
                    error=failed,
                )
            )
        except Exception as e:
            logger.warning(f"Failed to record resolution metrics: {e}")

    def _emit(self, level: int, event: str, exc_info: bool = False, **fields: Any) -> None:
        log_event(self.events, level, event, exc_info=exc_info, **fields)

    async def submit_feedback(
        self,
        query_id: str,
        rating: int,
        comment: str | None = None,
        user_id: str | None = None,
    ) -> FeedbackEntry | None:
        """Forward a user rating to the feedback system.

        Sink failures are logged and swallowed; feedback is best effort and
        happens after the response was already delivered.

        Args:
            query_id: Identifier of the rated query/response
            rating: Rating from 1 to 5
            comment: Optional free-text comment
            user_id: Optional user id (anonymous if omitted)

        Returns:
            The submitted FeedbackEntry, or None if it could not be stored

        Raises:
            InputValidationError: If the rating is out of range
        """
        if not MIN_RATING <= rating <= MAX_RATING:
            raise InputValidationError(
                f"Rating must be between {MIN_RATING} and {MAX_RATING}", field="rating"
            )

        entry = FeedbackEntry(
            id=f"feedback_{uuid.uuid4().hex[:12]}",
            query_id=query_id,
            user_id=user_id or "anonymous",
            rating=rating,
            comment=comment,
            timestamp=now_utc().isoformat(),
        )

        if self.feedback_system is None:
            logger.warning("Feedback received but no feedback system is configured")
            return None

        try:
            await self.feedback_system.submit_feedback(entry)
        except Exception as e:
            logger.error(f"Failed to submit feedback for {query_id}: {e}", exc_info=True)
            return None

        logger.info(f"Feedback submitted for {query_id} (rating={rating})")
        return entry

    async def get_system_stats(self) -> dict[str, Any]:
        """Collect statistics from collaborators and resolution metrics.

        Returns:
            Dict with cache, account, knowledge base and resolution stats
        """
        stats: dict[str, Any] = {"resolution": self.metrics.get_summary()}

        for name, source, method in (
            ("cache", self.cache, "get_stats"),
            ("accounts", self.account_manager, "get_usage_stats"),
            ("knowledge_base", self.knowledge_base, "get_stats"),
        ):
            getter = getattr(source, method, None)
            if getter is None:
                continue
            try:
                stats[name] = getter()
            except Exception as e:
                logger.warning(f"Failed to collect {name} stats: {e}")
                stats[name] = {"error": str(e)}

        return stats
