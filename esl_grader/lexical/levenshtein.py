"""Edit distance between words."""

from rapidfuzz.distance import Levenshtein


def levenshtein(a: str, b: str) -> int:
    """Unit-cost insert/delete/substitute distance between ``a`` and ``b``."""
    return Levenshtein.distance(a, b)
