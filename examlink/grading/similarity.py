"""
String Similarity

Position-wise character similarity used for free-text tolerance matching.
Existing tolerance thresholds were calibrated against this exact metric, so
it is intentionally not an edit distance.

Positions are UTF-16 code units, the unit the thresholds were calibrated
on: a character outside the Basic Multilingual Plane occupies two positions.
"""

from typing import List


def _code_units(text: str) -> List[bytes]:
    data = text.encode("utf-16-le", "surrogatepass")
    return [data[i:i + 2] for i in range(0, len(data), 2)]


def similarity(a: str, b: str) -> float:
    """
    Fraction of positionally matching characters over the longer length.

    Only positions below the shorter string's length can match.

    Args:
        a: First string
        b: Second string

    Returns:
        Ratio in [0, 1]; 1.0 for equal strings, 0.0 if either is empty

    Examples:
        >>> similarity("hello", "hallo")
        0.8
        >>> similarity("abc", "")
        0.0
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    units_a = _code_units(a)
    units_b = _code_units(b)
    matches = sum(1 for x, y in zip(units_a, units_b) if x == y)
    return matches / max(len(units_a), len(units_b))
