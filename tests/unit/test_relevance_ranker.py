"""Tests for knowledge entry relevance ranking."""

import random

import pytest

from clinical_resolver.core.relevance_ranker import RelevanceRanker
from clinical_resolver.lib.config import RankerSettings
from clinical_resolver.models.knowledge import KnowledgeEntry, SearchQuery

pytestmark = pytest.mark.unit


@pytest.fixture
def ranker():
    return RelevanceRanker()


def _entry(entry_id, **fields):
    fields.setdefault("title", entry_id)
    return KnowledgeEntry(id=entry_id, **fields)


def test_title_exact_match_score(ranker, low_back_entry):
    """Two exact title hits: 2 * 3.0 / (2 * 10) * 0.9 = 0.27."""
    results = ranker.search(SearchQuery(text="dor lombar"), [low_back_entry])

    assert len(results) == 1
    assert results[0].score == pytest.approx(0.27)
    assert results[0].matched_fields == ["title"]


def test_multi_field_score(ranker, tendinitis_entry):
    results = ranker.search(SearchQuery(text="tendinite patelar"), [tendinitis_entry])

    assert results[0].score == pytest.approx(0.825)
    assert results[0].matched_fields == ["title", "content", "diagnosis", "symptoms", "tags"]


def test_term_counts_once_across_fields(ranker):
    """A term matching several fields still counts as one matched term.

    "ombro" matches title and tags, "cotovelo" matches nothing, so the match
    ratio is 1/2 and no sparse penalty applies.
    """
    entry = _entry("kb-1", title="Ombro", tags=["ombro"], confidence=1.0)
    results = ranker.search(SearchQuery(text="ombro cotovelo"), [entry])

    assert results[0].score == pytest.approx((3.0 + 1.5) / 20)


def test_sparse_match_penalty():
    """One of four terms matched: ratio 0.25 < 0.3 multiplies the score."""
    ranker = RelevanceRanker(RankerSettings(generic_search_threshold=0.0))
    entry = _entry("kb-1", title="Ombro", diagnosis="ombro", symptoms=["ombro"], confidence=1.0)

    sparse = ranker.search(SearchQuery(text="ombro joelho quadril tornozelo"), [entry])
    assert sparse[0].score == pytest.approx((3.0 + 2.5 + 2.0) / 40 * 0.25)

    # Half the terms matched: no penalty
    dense = ranker.search(SearchQuery(text="ombro joelho"), [entry])
    assert dense[0].score == pytest.approx((3.0 + 2.5 + 2.0) / 20)


def test_category_and_specialty_boosts(ranker):
    entry = _entry(
        "kb-1",
        title="Ombro Congelado",
        category="protocol",
        specialty="ortopedia",
        confidence=1.0,
    )
    plain = ranker.search(SearchQuery(text="ombro congelado"), [entry])[0].score
    boosted = ranker.search(
        SearchQuery(text="ombro congelado", category="protocol", specialty="ortopedia"),
        [entry],
    )[0].score

    assert plain == pytest.approx(0.3)
    assert boosted == pytest.approx(0.3 * 1.3 * 1.2)


def test_score_is_clamped(ranker):
    entry = _entry(
        "kb-1",
        title="ombro",
        content="ombro",
        diagnosis="ombro",
        symptoms=["ombro"],
        techniques=["ombro"],
        tags=["ombro"],
        category="protocol",
        confidence=1.0,
    )
    results = ranker.search(SearchQuery(text="ombro", category="protocol"), [entry])
    assert results[0].score == 1.0


def test_partial_match(ranker):
    """"lombar" is a substring of "lombares": partial factor 0.7."""
    entry = _entry("kb-1", title="Dores Lombares", confidence=1.0)
    results = ranker.search(SearchQuery(text="lombar"), [entry])
    assert results[0].score == pytest.approx(3.0 * 0.7 / 10)


def test_results_sorted_and_limited(ranker):
    entries = [
        _entry("weak", title="Joelho", confidence=0.5),
        _entry("strong", title="Joelho", confidence=1.0),
        _entry("mid", title="Joelho", confidence=0.8),
    ]
    results = ranker.search(SearchQuery(text="joelho", limit=2), entries)

    assert [r.entry.id for r in results] == ["strong", "mid"]
    assert results[0].score >= results[1].score


def test_results_below_generic_threshold_are_dropped(ranker):
    entry = _entry("kb-1", title="Quadril", content="joelho", confidence=1.0)
    # Content only: 1.0 / 10 = 0.1, not strictly above the threshold
    assert ranker.search(SearchQuery(text="joelho"), [entry]) == []


def test_empty_inputs(ranker, low_back_entry):
    assert ranker.search(SearchQuery(text=""), [low_back_entry]) == []
    assert ranker.search(SearchQuery(text="de para com"), [low_back_entry]) == []
    assert ranker.search(SearchQuery(text="dor lombar"), []) == []


def test_highlights_cut_from_original_text(ranker):
    entry = _entry(
        "kb-1",
        title="Dor Lombar",
        content="Pacientes com lombalgia crônica respondem bem ao exercício supervisionado.",
        confidence=1.0,
    )
    results = ranker.search(SearchQuery(text="cronica lombar"), [entry])
    highlights = results[0].highlights

    assert "Dor Lombar" in highlights
    assert any("crônica" in h and h.startswith("...") and h.endswith("...") for h in highlights)


def test_custom_settings_change_weights():
    ranker = RelevanceRanker(RankerSettings(title_weight=6.0))
    entry = _entry("kb-1", title="Joelho", confidence=1.0)
    results = ranker.search(SearchQuery(text="joelho"), [entry])
    assert results[0].score == pytest.approx(0.6)


def test_search_by_symptoms(ranker):
    full = _entry("full", symptoms=["edema", "dor ao apoio"], confidence=1.0)
    half = _entry("half", symptoms=["edema"], confidence=1.0)
    none = _entry("none", symptoms=["rigidez"], confidence=1.0)

    results = ranker.search_by_symptoms(["Edema", "dor ao apoio"], [half, none, full])

    assert [r.entry.id for r in results] == ["full", "half"]
    assert results[0].score == pytest.approx(1.0)
    assert results[1].score == pytest.approx(0.5)
    assert results[1].highlights == ["edema"]


def test_search_by_symptoms_empty(ranker, low_back_entry):
    assert ranker.search_by_symptoms([], [low_back_entry]) == []


def test_search_by_symptoms_counts_blank_symptoms(ranker):
    entry = _entry("kb-1", symptoms=["edema"], confidence=1.0)

    results = ranker.search_by_symptoms(["edema", ""], [entry])

    assert results[0].score == pytest.approx(0.5)
    assert results[0].highlights == ["edema"]
    assert ranker.search_by_symptoms(["", "  "], [entry]) == []


def test_search_by_diagnosis(ranker):
    match = _entry("match", diagnosis="Lombalgia crônica", confidence=0.9)
    other = _entry("other", diagnosis="Fratura de punho", confidence=1.0)
    missing = _entry("missing")

    results = ranker.search_by_diagnosis("lombalgia cronica", [other, missing, match])

    assert [r.entry.id for r in results] == ["match"]
    assert results[0].score == pytest.approx(0.9)


def test_search_by_techniques(ranker):
    entry = _entry("kb-1", techniques=["Crioterapia", "Alongamento", "Fortalecimento"], confidence=1.0)
    results = ranker.search_by_techniques("crioterapia", [entry])

    assert results[0].score == pytest.approx(1 / 3)
    assert results[0].matched_fields == ["techniques"]


def test_fuzzy_search_tolerates_typos(ranker):
    entry = _entry("kb-1", title="Tendinite", confidence=1.0)
    results = ranker.fuzzy_search("tendnite", [entry])

    assert len(results) == 1
    assert results[0].matched_fields[0] == "title"
    assert 0.6 < results[0].score <= 1.0


def test_fuzzy_search_tag_match(ranker):
    entry = _entry("kb-1", title="Protocolo XYZ", tags=["ombro"], confidence=1.0)
    results = ranker.fuzzy_search("ombro", [entry])

    assert results[0].matched_fields == ["tags"]
    assert results[0].score == pytest.approx(0.8)


def test_fuzzy_search_content_uses_relaxed_threshold(ranker):
    """Content passes above threshold * 0.8 and is weighted by 0.9."""
    entry = _entry("kb-1", title="Protocolo XYZ", content="Tendinite", confidence=1.0)

    # A perfect title would still miss at 1.0, content only needs > 0.8
    results = ranker.fuzzy_search("tendinite", [entry], threshold=1.0)

    assert results[0].matched_fields == ["content"]
    assert results[0].score == pytest.approx(0.9)
    assert results[0].highlights == []

    assert ranker.fuzzy_search("quadril", [entry], threshold=1.0) == []


def test_equal_scores_keep_candidate_order(ranker):
    entries = [_entry(str(i), title="Joelho", confidence=1.0) for i in range(5)]

    results = ranker.search(SearchQuery(text="joelho"), entries)

    assert [r.entry.id for r in results] == ["0", "1", "2", "3", "4"]
    assert len({r.score for r in results}) == 1

    fuzzy = ranker.fuzzy_search("joelho", entries)
    assert [r.entry.id for r in fuzzy] == ["0", "1", "2", "3", "4"]


def test_highlights_are_capped_title_first(ranker):
    entry = _entry(
        "kb-1",
        title="Ombro Joelho Quadril",
        content="Tornozelo punho cotovelo coluna",
        confidence=1.0,
    )
    query = "ombro joelho quadril tornozelo punho cotovelo coluna"

    highlights = ranker.search(SearchQuery(text=query), [entry])[0].highlights

    assert len(highlights) == 5
    assert highlights[:3] == ["Ombro Joelho Quadril"] * 3
    assert "Tornozelo" in highlights[3]
    assert "punho" in highlights[4]


VOCABULARY = [
    "ombro", "joelho", "lombar", "tendinite", "tendinte", "patelar", "entorse",
    "tornozelo", "cervical", "edema", "dor", "crioterapia", "alongamento",
    "fortalecimento", "excentrico", "lombalgia", "cronica", "aguda", "quadril",
]


def _random_entry(rng, entry_id):
    def words(count):
        return " ".join(rng.choice(VOCABULARY) for _ in range(count))

    return KnowledgeEntry(
        id=entry_id,
        title=words(rng.randint(1, 3)),
        content=words(rng.randint(0, 8)),
        diagnosis=words(rng.randint(1, 2)) if rng.random() < 0.5 else None,
        symptoms=[words(1) for _ in range(rng.randint(0, 3))],
        techniques=[words(2) for _ in range(rng.randint(0, 3))],
        tags=[words(1) for _ in range(rng.randint(0, 3))],
        category=rng.choice([None, "protocol", "exercise"]),
        specialty=rng.choice([None, "ortopedia", "esportiva"]),
        confidence=rng.random(),
    )


def test_random_queries_stay_bounded_and_sorted(ranker):
    rng = random.Random(7)

    for round_number in range(300):
        entries = [_random_entry(rng, f"{round_number}-{i}") for i in range(rng.randint(1, 6))]
        query = SearchQuery(
            text=" ".join(rng.choice(VOCABULARY) for _ in range(rng.randint(1, 4))),
            category=rng.choice([None, "protocol", "exercise"]),
            specialty=rng.choice([None, "ortopedia", "esportiva"]),
            limit=rng.randint(1, 6),
        )

        results = ranker.search(query, entries)
        scores = [r.score for r in results]

        assert len(results) <= query.limit
        assert all(0.1 < score <= 1.0 for score in scores)
        assert scores == sorted(scores, reverse=True)

        fuzzy_scores = [r.score for r in ranker.fuzzy_search(query.text, entries)]
        assert all(0.0 <= score <= 1.0 for score in fuzzy_scores)
        assert fuzzy_scores == sorted(fuzzy_scores, reverse=True)
