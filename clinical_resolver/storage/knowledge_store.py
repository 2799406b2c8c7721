# clinical_resolver/storage/knowledge_store.py
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

import yaml
from pydantic import ValidationError

from clinical_resolver.core.interfaces import KnowledgeBase
from clinical_resolver.core.similarity import fuzzy_match
from clinical_resolver.core.text_normalizer import extract_terms, normalize
from clinical_resolver.lib.config import RankerSettings
from clinical_resolver.lib.errors import ConfigurationError
from clinical_resolver.models.knowledge import KnowledgeEntry

logger = logging.getLogger(__name__)

_SEARCHABLE_FIELDS = ("title", "content", "diagnosis", "symptoms", "techniques", "tags")


class InMemoryKnowledgeBase(KnowledgeBase):
    """List-backed knowledge base with a cheap term prefilter."""

    def __init__(
        self,
        entries: Optional[Iterable[KnowledgeEntry]] = None,
        fuzzy_threshold: Optional[float] = None,
    ):
        """Initialize the store.

        Args:
            entries: Initial entries
            fuzzy_threshold: Term similarity admitting a misspelled match
                (defaults to the ranker's fuzzy term threshold)
        """
        self.fuzzy_threshold = (
            RankerSettings().fuzzy_term_threshold if fuzzy_threshold is None else fuzzy_threshold
        )
        self._entries: dict[str, KnowledgeEntry] = {}
        self._haystacks: dict[str, str] = {}
        self._terms: dict[str, list[str]] = {}
        for entry in entries or []:
            self.add_entry(entry)

    @classmethod
    def from_yaml(
        cls, path: str | Path, fuzzy_threshold: Optional[float] = None
    ) -> "InMemoryKnowledgeBase":
        """Load seed entries from a YAML file with an ``entries`` list."""
        seed_path = Path(path)
        if not seed_path.exists():
            logger.warning(f"Knowledge seed file not found: {seed_path}, starting empty")
            return cls(fuzzy_threshold=fuzzy_threshold)

        with open(seed_path) as f:
            data = yaml.safe_load(f) or {}

        try:
            entries = [KnowledgeEntry(**item) for item in data.get("entries", [])]
        except (TypeError, ValidationError) as e:
            raise ConfigurationError(f"Invalid knowledge entry in {seed_path}: {e}") from e

        logger.info(f"Loaded {len(entries)} knowledge entries from {seed_path}")
        return cls(entries, fuzzy_threshold=fuzzy_threshold)

    def add_entry(self, entry: KnowledgeEntry) -> None:
        """Add or replace an entry."""
        self._entries[entry.id] = entry
        self._haystacks[entry.id] = self._haystack(entry)
        self._terms[entry.id] = extract_terms(self._haystacks[entry.id])

    def remove_entry(self, entry_id: str) -> bool:
        """Remove an entry. Returns False if it did not exist."""
        self._haystacks.pop(entry_id, None)
        self._terms.pop(entry_id, None)
        return self._entries.pop(entry_id, None) is not None

    def get_entry(self, entry_id: str) -> Optional[KnowledgeEntry]:
        return self._entries.get(entry_id)

    def _haystack(self, entry: KnowledgeEntry) -> str:
        parts = []
        for name in _SEARCHABLE_FIELDS:
            value = getattr(entry, name)
            if isinstance(value, list):
                parts.extend(value)
            elif value:
                parts.append(value)
        return normalize(" ".join(parts))

    async def search_entries(self, text: str) -> List[KnowledgeEntry]:
        """Return entries sharing at least one term with the query.

        A term is shared when it is a substring of the normalized entry text
        or is at least ``fuzzy_threshold`` similar to one of the entry's
        terms. This admits every entry the ranker can score, misspelled
        queries included.
        """
        terms = extract_terms(text)
        if not terms:
            return []

        return [
            entry
            for entry_id, entry in self._entries.items()
            if any(self._shares_term(entry_id, term) for term in terms)
        ]

    def _shares_term(self, entry_id: str, term: str) -> bool:
        if term in self._haystacks[entry_id]:
            return True
        return any(
            fuzzy_match(term, entry_term, self.fuzzy_threshold)
            for entry_term in self._terms[entry_id]
        )

    def get_stats(self) -> dict[str, Any]:
        categories: dict[str, int] = {}
        for entry in self._entries.values():
            key = entry.category or "uncategorized"
            categories[key] = categories.get(key, 0) + 1

        total = len(self._entries)
        avg_confidence = (
            sum(e.confidence for e in self._entries.values()) / total if total else 0.0
        )
        return {
            "total_entries": total,
            "by_category": categories,
            "avg_confidence": round(avg_confidence, 3),
        }

    def __len__(self) -> int:
        return len(self._entries)
