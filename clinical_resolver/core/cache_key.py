"""Deterministic cache addressing for normalized queries."""

from clinical_resolver.core.text_normalizer import normalize
from clinical_resolver.models.query import QueryType

CACHE_KEY_PREFIX = "ai_query"

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def rolling_hash(text: str) -> int:
    """32-bit signed rolling hash (``h = h * 31 + code``).

    Distinct texts can collide. With 2^32 buckets this is negligible for a
    clinic-sized query corpus, and a collision only serves another query's
    cached answer, so it is accepted rather than prevented.

    Args:
        text: Text to hash

    Returns:
        Signed 32-bit hash value
    """
    value = 0
    for char in text:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def to_base36(value: int) -> str:
    """Render a non-negative integer in base 36."""
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_cache_key(query_text: str, query_type: QueryType | str) -> str:
    """Build the cache key of a query.

    Texts differing only by case, accents, punctuation or whitespace map to
    the same key.

    Args:
        query_text: Raw query text
        query_type: Query type (namespace)

    Returns:
        Key of the form ``ai_query_<type>_<hash>``
    """
    type_name = query_type.value if isinstance(query_type, QueryType) else str(query_type)
    digest = to_base36(abs(rolling_hash(normalize(query_text))))
    return f"{CACHE_KEY_PREFIX}_{type_name}_{digest}"
