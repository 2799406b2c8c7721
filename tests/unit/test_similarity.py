"""Tests for Jaro-Winkler similarity."""

import pytest

from clinical_resolver.core.similarity import fuzzy_match, similarity

pytestmark = pytest.mark.unit


def test_identical_strings():
    assert similarity("ombro", "ombro") == 1.0
    assert similarity("", "") == 1.0


def test_empty_operand():
    assert similarity("", "joelho") == 0.0
    assert similarity("joelho", "") == 0.0


def test_no_common_characters():
    assert similarity("abc", "xyz") == 0.0


def test_known_value():
    """kitten/sitting: jaro 0.746, no shared prefix."""
    assert similarity("kitten", "sitting") == pytest.approx(0.746, abs=0.001)


def test_prefix_bonus():
    """martha/marhta: jaro 0.944 plus a 3 character prefix bonus."""
    assert similarity("martha", "marhta") == pytest.approx(0.961, abs=0.001)


@pytest.mark.parametrize(
    "first,second",
    [("lombar", "lombalgia"), ("tendinite", "tendinopatia"), ("dor", "dores")],
)
def test_symmetry(first, second):
    assert similarity(first, second) == pytest.approx(similarity(second, first))


def test_bounded():
    for first, second in [("a", "b"), ("joelho", "joelhos"), ("x" * 30, "x" * 29)]:
        assert 0.0 <= similarity(first, second) <= 1.0


def test_fuzzy_match_threshold_inclusive():
    score = similarity("joelho", "joelhos")
    assert fuzzy_match("joelho", "joelhos", score)
    assert not fuzzy_match("joelho", "joelhos", min(1.0, score + 0.01))
