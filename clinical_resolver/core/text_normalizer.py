"""Accent- and punctuation-insensitive canonicalization of clinical text.

Queries, knowledge-entry fields and cache keys all go through ``normalize`` so
that matching is deterministic regardless of where the text came from.
"""

import re
import unicodedata

_COMBINING_MARKS = re.compile("[\u0300-\u036f]")
_NON_WORD = re.compile(r"[^\w\s]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")

MIN_TERM_LENGTH = 3

# Portuguese function words, stored in normalized (accent-free) form.
STOP_WORDS = frozenset(
    {
        "a", "o", "e", "de", "do", "da", "em", "para", "com", "por", "que", "se",
        "na", "no", "um", "uma", "os", "as", "dos", "das", "sao", "foi", "ter",
        "seu", "sua", "seus", "suas",
    }
)


def normalize(text: str | None) -> str:
    """Canonicalize text for matching.

    Lower-cases, decomposes (NFD), strips combining diacritics, replaces
    non-word characters with spaces, collapses whitespace and trims.

    Args:
        text: Raw text

    Returns:
        Normalized text (empty string for empty input)
    """
    if not text:
        return ""

    value = unicodedata.normalize("NFD", text.lower())
    value = _COMBINING_MARKS.sub("", value)
    value = _NON_WORD.sub(" ", value)
    return _WHITESPACE.sub(" ", value).strip()


def extract_terms(text: str | None) -> list[str]:
    """Extract significant terms from text.

    Drops short tokens and stop words, and removes duplicates while keeping
    first-seen order.

    Args:
        text: Raw or normalized text

    Returns:
        Ordered list of unique terms
    """
    terms: list[str] = []
    seen: set[str] = set()

    for token in normalize(text).split():
        if len(token) < MIN_TERM_LENGTH or token in STOP_WORDS or token in seen:
            continue
        seen.add(token)
        terms.append(token)

    return terms


def fold_preserving_length(text: str) -> str:
    """Fold text character by character without changing its length.

    Used to locate normalized terms inside the original text so highlight
    windows can be cut from the text the user actually wrote.

    Args:
        text: Original text

    Returns:
        Folded text with ``len(result) == len(text)``
    """
    folded = []
    for char in text:
        base = _COMBINING_MARKS.sub("", unicodedata.normalize("NFD", char.lower()))
        base = base[:1] or " "
        folded.append(" " if _NON_WORD.match(base) else base)
    return "".join(folded)
