"""Exact-then-fuzzy term matching over essay text.

Matchers are built from an ordered list of ``(term, category)`` pairs. The
exact pass finds whole-word, case-insensitive occurrences of every term.
The fuzzy pass then looks at the remaining words and accepts the closest
single-word term within the edit-distance limit, unless another match is
already nearby.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from .levenshtein import levenshtein

WORD_PATTERN = re.compile(r"[A-Za-z]+(?:['’-][A-Za-z]+)*")

# Function words that sit one edit away from common terms
# ("than"/"then", "them"/"then"). Ignored unless they are terms themselves.
FUZZY_STOPWORDS = frozenset({
    "the", "them", "they", "than", "that", "this", "then", "there", "these",
    "those", "when", "what", "with", "were", "where", "have", "had", "and",
    "but", "for", "not", "are", "was", "his", "her", "she", "him", "you",
    "our", "out", "too", "two", "its", "can", "did", "does", "from", "into",
})


@dataclass(frozen=True)
class LexicalMatch:
    word: str
    """Surface text as written in the essay."""

    term: str
    """Canonical term, or the affix group for prefix/suffix matches."""

    position: int
    """Code-point index of the match in the essay."""

    category: str
    kind: str
    """One of ``exact``, ``fuzzy``, ``prefix``, ``suffix``."""

    distance: int = 0

    @property
    def display(self) -> str:
        if self.kind in ("prefix", "suffix"):
            return self.word
        return self.term


def term_pattern(term: str) -> re.Pattern:
    """Whole-word, case-insensitive pattern for a word or phrase."""
    parts = [re.escape(part) for part in term.split()]
    return re.compile(r"(?<!\w)" + r"\s+".join(parts) + r"(?!\w)", re.IGNORECASE)


class FuzzyMatcher:
    """Base matcher; subclasses choose the distance limit and proximity window."""

    window = 10

    def __init__(self, terms: Iterable[Tuple[str, str]]):
        self.terms: List[Tuple[str, str]] = []
        seen: Set[str] = set()
        for term, category in terms:
            term = " ".join(term.split())
            if not term or term.lower() in seen:
                continue
            seen.add(term.lower())
            self.terms.append((term, category))
        self._patterns = [(term, category, term_pattern(term)) for term, category in self.terms]
        self._single_words = [
            (term.lower(), term, category) for term, category in self.terms if " " not in term
        ]
        self._ignored = FUZZY_STOPWORDS.difference(lowered for lowered, _, _ in self._single_words)

    def limit(self, term: str) -> int:
        return 1 if len(term) <= 4 else 2

    def match(self, text: str) -> List[LexicalMatch]:
        """All matches in ``text``, sorted by position."""
        if not text:
            return []
        matches = self._exact_matches(text)
        matches.extend(self._fuzzy_matches(text, matches))
        matches.extend(self._extra_matches(text, matches))
        return sorted(matches, key=lambda m: (m.position, -len(m.word)))

    def found_terms(self, text: str) -> List[str]:
        """Display strings for every match in text order, one per occurrence."""
        return [m.display for m in self.match(text)]

    def _exact_matches(self, text: str) -> List[LexicalMatch]:
        matches = []
        seen: Set[Tuple[str, int]] = set()
        for term, category, pattern in self._patterns:
            for m in pattern.finditer(text):
                key = (m.group(0).lower(), m.start())
                if key in seen:
                    continue
                seen.add(key)
                matches.append(LexicalMatch(m.group(0), term, m.start(), category, "exact"))
        return matches

    def _fuzzy_matches(self, text: str, existing: Sequence[LexicalMatch]) -> List[LexicalMatch]:
        accepted: List[LexicalMatch] = []
        for m in WORD_PATTERN.finditer(text):
            word = m.group(0)
            position = m.start()
            if self._near_match(position, existing) or self._near_match(position, accepted):
                continue
            best = self._closest_term(word.lower())
            if best is None:
                continue
            term, category, distance = best
            accepted.append(LexicalMatch(word, term, position, category, "fuzzy", distance))
        return accepted

    def _closest_term(self, word: str) -> Optional[Tuple[str, str, int]]:
        if word in self._ignored:
            return None
        best = None
        for lowered, term, category in self._single_words:
            distance = levenshtein(word, lowered)
            if 0 < distance <= self.limit(lowered):
                if best is None or distance < best[2]:
                    best = (term, category, distance)
        return best

    def _near_match(self, position: int, matches: Iterable[LexicalMatch]) -> bool:
        return any(abs(m.position - position) <= self.window for m in matches)

    def _extra_matches(self, text: str, existing: Sequence[LexicalMatch]) -> List[LexicalMatch]:
        """Hook for matcher-specific passes run after the fuzzy pass."""
        return []
