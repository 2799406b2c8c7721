"""Relevance ranking of knowledge entries against a clinical query."""

import logging

from clinical_resolver.core.similarity import fuzzy_match, similarity
from clinical_resolver.core.text_normalizer import (
    extract_terms,
    fold_preserving_length,
    normalize,
)
from clinical_resolver.lib.config import RankerSettings
from clinical_resolver.models.knowledge import (
    FIELD_ORDER,
    KnowledgeEntry,
    SearchQuery,
    SearchResult,
    clamp_unit,
)

logger = logging.getLogger(__name__)


def _field_text(entry: KnowledgeEntry, field_name: str) -> str:
    """Get a field as a single string, joining list-valued fields."""
    value = getattr(entry, field_name, None)
    if not value:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def _sort_desc(results: list[SearchResult]) -> list[SearchResult]:
    # sorted() is stable, so ties keep candidate order
    return sorted(results, key=lambda r: r.score, reverse=True)


class RelevanceRanker:
    """Scores knowledge entries with weighted multi-field fuzzy matching."""

    def __init__(self, settings: RankerSettings | None = None):
        """Initialize ranker.

        Args:
            settings: Ranking constants (defaults if omitted)
        """
        self.settings = settings or RankerSettings()

    def search(self, query: SearchQuery, candidates: list[KnowledgeEntry]) -> list[SearchResult]:
        """Rank candidates against a query.

        Args:
            query: Search query
            candidates: Knowledge entries to score

        Returns:
            Results above the generic threshold, best first, at most query.limit
        """
        terms = extract_terms(query.text)
        if not terms or not candidates:
            return []

        scored = []
        for entry in candidates:
            score = self._score_entry(entry, terms, query)
            if score > self.settings.generic_search_threshold:
                scored.append((entry, score))

        scored.sort(key=lambda item: item[1], reverse=True)
        limit = query.limit if query.limit is not None else self.settings.default_limit

        results = [
            SearchResult(
                entry=entry,
                score=score,
                highlights=self._highlights(entry, terms),
                matched_fields=self._matched_fields(entry, terms),
            )
            for entry, score in scored[: max(0, limit)]
        ]

        logger.debug(
            f"Ranked {len(candidates)} candidates for {len(terms)} terms, "
            f"{len(results)} above threshold"
        )
        return results

    def _score_entry(self, entry: KnowledgeEntry, terms: list[str], query: SearchQuery) -> float:
        """Compute the final relevance score of one entry."""
        s = self.settings
        raw_score = 0.0
        matched_terms: set[str] = set()

        for field_name, weight in s.field_weights():
            field_terms = extract_terms(_field_text(entry, field_name))
            if not field_terms:
                continue
            field_term_set = set(field_terms)

            for term in terms:
                contribution = self._term_contribution(term, field_terms, field_term_set, weight)
                if contribution > 0:
                    raw_score += contribution
                    matched_terms.add(term)

        score = raw_score / (len(terms) * s.normalization_factor)
        score *= entry.confidence

        if query.category and entry.category == query.category:
            score *= s.category_boost
        if query.specialty and entry.specialty == query.specialty:
            score *= s.specialty_boost

        match_ratio = len(matched_terms) / len(terms)
        if match_ratio < s.sparse_match_threshold:
            score *= match_ratio

        return clamp_unit(score)

    def _term_contribution(
        self,
        term: str,
        field_terms: list[str],
        field_term_set: set[str],
        weight: float,
    ) -> float:
        """Pick the single best match method of a term against one field."""
        s = self.settings

        if term in field_term_set:
            return weight * s.exact_match_factor

        if any(term in field_term or field_term in term for field_term in field_terms):
            return weight * s.partial_match_factor

        best = max(similarity(term, field_term) for field_term in field_terms)
        if best > s.fuzzy_term_threshold:
            return weight * best * s.fuzzy_match_factor

        return 0.0

    def _highlights(self, entry: KnowledgeEntry, terms: list[str]) -> list[str]:
        """Extract context windows around query terms in title and content."""
        highlights: list[str] = []
        for text in (entry.title, entry.content):
            if text:
                highlights.extend(self._extract_highlights(text, terms))
        return highlights[: self.settings.max_highlights]

    def _extract_highlights(self, text: str, terms: list[str]) -> list[str]:
        folded = fold_preserving_length(text)
        context = self.settings.highlight_context_chars
        highlights = []

        for term in terms:
            index = folded.find(term)
            if index == -1:
                continue

            start = max(0, index - context)
            end = min(len(text), index + len(term) + context)
            snippet = text[start:end]
            if start > 0:
                snippet = "..." + snippet
            if end < len(text):
                snippet = snippet + "..."
            highlights.append(snippet)

        return highlights

    def _matched_fields(self, entry: KnowledgeEntry, terms: list[str]) -> list[str]:
        """List fields whose normalized text contains any query term."""
        matched = []
        for field_name in FIELD_ORDER:
            normalized_field = normalize(_field_text(entry, field_name))
            if normalized_field and any(term in normalized_field for term in terms):
                matched.append(field_name)
        return matched

    def search_by_symptoms(
        self, symptoms: list[str], candidates: list[KnowledgeEntry]
    ) -> list[SearchResult]:
        """Rank entries by the share of symptoms they cover.

        Args:
            symptoms: Reported symptoms
            candidates: Knowledge entries

        Returns:
            Entries matching at least one symptom, best first. Blank symptoms
            never match but still count toward the total.
        """
        wanted = [normalize(symptom) for symptom in symptoms if normalize(symptom)]
        if not wanted:
            return []

        threshold = self.settings.symptom_match_threshold
        results = []

        for entry in candidates:
            entry_symptoms = [normalize(s) for s in entry.symptoms]
            matched = [
                symptom for symptom in wanted
                if any(fuzzy_match(symptom, es, threshold) for es in entry_symptoms)
            ]
            if matched:
                results.append(
                    SearchResult(
                        entry=entry,
                        score=len(matched) / len(symptoms) * entry.confidence,
                        highlights=matched,
                        matched_fields=["symptoms"],
                    )
                )

        return _sort_desc(results)

    def search_by_diagnosis(
        self, diagnosis: str, candidates: list[KnowledgeEntry]
    ) -> list[SearchResult]:
        """Rank entries by similarity of their diagnosis.

        Args:
            diagnosis: Diagnosis text
            candidates: Knowledge entries

        Returns:
            Entries whose diagnosis similarity exceeds the threshold, best first
        """
        normalized_diagnosis = normalize(diagnosis)
        threshold = self.settings.diagnosis_match_threshold
        results = []

        for entry in candidates:
            if not entry.diagnosis:
                continue
            score = similarity(normalized_diagnosis, normalize(entry.diagnosis))
            if score > threshold:
                results.append(
                    SearchResult(
                        entry=entry,
                        score=score * entry.confidence,
                        highlights=[entry.diagnosis],
                        matched_fields=["diagnosis"],
                    )
                )

        return _sort_desc(results)

    def search_by_techniques(
        self, technique: str, candidates: list[KnowledgeEntry]
    ) -> list[SearchResult]:
        """Rank entries by how many of their techniques match.

        Args:
            technique: Technique name
            candidates: Knowledge entries

        Returns:
            Entries with at least one matching technique, best first
        """
        normalized_technique = normalize(technique)
        threshold = self.settings.technique_match_threshold
        results = []

        for entry in candidates:
            if not entry.techniques:
                continue
            matched = [
                t for t in entry.techniques
                if fuzzy_match(normalized_technique, normalize(t), threshold)
            ]
            if matched:
                results.append(
                    SearchResult(
                        entry=entry,
                        score=len(matched) / len(entry.techniques) * entry.confidence,
                        highlights=matched,
                        matched_fields=["techniques"],
                    )
                )

        return _sort_desc(results)

    def fuzzy_search(
        self,
        text: str,
        candidates: list[KnowledgeEntry],
        threshold: float | None = None,
    ) -> list[SearchResult]:
        """Typo-tolerant whole-string search over title, content and tags.

        Args:
            text: Query text
            candidates: Knowledge entries
            threshold: Title/tag similarity threshold (default from settings)

        Returns:
            Matching entries, best first
        """
        s = self.settings
        if threshold is None:
            threshold = s.fuzzy_search_threshold
        normalized_query = normalize(text)
        results = []

        for entry in candidates:
            max_score = 0.0
            matched_fields: list[str] = []
            highlights: list[str] = []

            if entry.title:
                title_similarity = similarity(normalized_query, normalize(entry.title))
                if title_similarity > threshold:
                    max_score = max(max_score, title_similarity)
                    matched_fields.append("title")
                    highlights.append(entry.title)

            if entry.content:
                content_similarity = similarity(normalized_query, normalize(entry.content))
                if content_similarity > threshold * s.fuzzy_content_threshold_factor:
                    max_score = max(max_score, content_similarity * s.fuzzy_content_weight)
                    matched_fields.append("content")

            tag_matches = [
                tag for tag in entry.tags
                if similarity(normalized_query, normalize(tag)) > threshold
            ]
            if tag_matches:
                max_score = max(max_score, s.fuzzy_tag_weight)
                matched_fields.append("tags")
                highlights.extend(tag_matches)

            if max_score > 0:
                results.append(
                    SearchResult(
                        entry=entry,
                        score=max_score * entry.confidence,
                        highlights=highlights[: s.max_highlights],
                        matched_fields=matched_fields,
                    )
                )

        return _sort_desc(results)
