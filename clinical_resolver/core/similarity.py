"""Jaro-Winkler string similarity."""

WINKLER_PREFIX_LIMIT = 4
WINKLER_SCALING = 0.1


def similarity(first: str, second: str) -> float:
    """Jaro-Winkler similarity between two strings.

    Args:
        first: First string
        second: Second string

    Returns:
        Similarity in [0, 1]; 1.0 for equal strings, 0.0 if either is empty
    """
    if first == second:
        return 1.0
    if not first or not second:
        return 0.0

    len_first = len(first)
    len_second = len(second)
    window = max(len_first, len_second) // 2 - 1

    first_matched = [False] * len_first
    second_matched = [False] * len_second
    matches = 0

    for i, char in enumerate(first):
        start = max(0, i - window)
        end = min(i + window + 1, len_second)
        for j in range(start, end):
            if second_matched[j] or second[j] != char:
                continue
            first_matched[i] = True
            second_matched[j] = True
            matches += 1
            break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i, char in enumerate(first):
        if not first_matched[i]:
            continue
        while not second_matched[k]:
            k += 1
        if char != second[k]:
            transpositions += 1
        k += 1

    jaro = (
        matches / len_first
        + matches / len_second
        + (matches - transpositions / 2) / matches
    ) / 3

    prefix = 0
    for a, b in zip(first[:WINKLER_PREFIX_LIMIT], second[:WINKLER_PREFIX_LIMIT]):
        if a != b:
            break
        prefix += 1

    return min(1.0, jaro + WINKLER_SCALING * prefix * (1 - jaro))


def fuzzy_match(first: str, second: str, threshold: float) -> bool:
    """Check whether two strings are similar enough.

    Args:
        first: First string
        second: Second string
        threshold: Minimum similarity (inclusive)

    Returns:
        True if similarity >= threshold
    """
    return similarity(first, second) >= threshold
