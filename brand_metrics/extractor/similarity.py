"""
Bounded-cost string similarity for fuzzy brand matching.

Edit distance is computed with rapidfuzz's Levenshtein implementation, but
only when it can plausibly matter. Two cost guards keep scanning long
sentences cheap:

- Length ratio: when the shorter string is less than half the longer one,
  the strings cannot be similar enough to match, so the longer length is
  returned as the distance without running the DP.
- Length cap: strings longer than the cap (50 characters by default) use a
  length-difference heuristic instead of the full DP.

Both guards trade precision for bounded cost. All comparisons are
case-insensitive.

Example:
    >>> similarity("Acme", "acme")
    1.0
    >>> round(similarity("Acmee", "Acme"), 2)
    0.8
"""

import math

from rapidfuzz.distance import Levenshtein

from ..config.schema import SimilaritySettings

_DEFAULT_SETTINGS = SimilaritySettings()


def distance(a: str, b: str, settings: SimilaritySettings = _DEFAULT_SETTINGS) -> int:
    """
    Case-insensitive edit distance with cost guards.

    Args:
        a: First string
        b: Second string
        settings: Length-ratio and length-cap guards

    Returns:
        Edit distance, or a bounded estimate when a guard applies

    Examples:
        >>> distance("kitten", "sitting")
        3
        >>> distance("ab", "abcdefgh")  # ratio 0.25 < 0.5: short-circuit
        8
    """
    m = len(a)
    n = len(b)
    longest = max(m, n)
    shortest = min(m, n)

    if longest == 0 or a.lower() == b.lower():
        return 0

    if shortest / longest < settings.min_length_ratio:
        return longest

    if longest > settings.max_compare_length:
        return abs(m - n) + math.ceil(longest * settings.long_string_penalty)

    return Levenshtein.distance(a.lower(), b.lower())


def similarity(a: str, b: str, settings: SimilaritySettings = _DEFAULT_SETTINGS) -> float:
    """
    Normalized similarity in [0, 1]: 1 - distance / max(len(a), len(b)).

    Examples:
        >>> similarity("", "")
        1.0
        >>> similarity("Acme", "")
        0.0
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return max(0.0, 1.0 - distance(a, b, settings) / longest)
