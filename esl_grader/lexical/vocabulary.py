"""Class vocabulary detection.

A class vocabulary list mixes plain words, multi-word phrases, and affix
groups such as ``"un-"``, ``"in-/im-/il-/ir-"`` or ``"-able, -ible"``. Any
essay word built on one of the group's fragments counts as using it.
"""

import re
from typing import Iterable, List, Sequence, Tuple, Union

from .matcher import FuzzyMatcher, LexicalMatch

NO_VOCABULARY_MATCHES = "N/A (no matches found)"

_GROUP_SPLIT = re.compile(r"[,/]")


def parse_affix_group(entry: str) -> Tuple[str, List[str]]:
    """Classify a vocabulary entry.

    Returns ``("prefix", fragments)``, ``("suffix", fragments)`` or
    ``("term", [])`` for ordinary words and phrases.
    """
    parts = [p.strip() for p in _GROUP_SPLIT.split(entry) if p.strip()]
    if parts and all(p.endswith("-") and not p.startswith("-") for p in parts):
        return "prefix", [p.rstrip("-").lower() for p in parts if p.rstrip("-")]
    if parts and all(p.startswith("-") and not p.endswith("-") for p in parts):
        return "suffix", [p.lstrip("-").lower() for p in parts if p.lstrip("-")]
    return "term", []


class VocabularyMatcher(FuzzyMatcher):
    """Finds taught vocabulary in an essay."""

    window = 5

    def __init__(self, vocabulary: Iterable[str]):
        terms = []
        self.affix_groups: List[Tuple[str, str, List[str]]] = []
        for entry in vocabulary:
            entry = entry.strip()
            # Section headers such as "Prefixes (any word using these counts):"
            if not entry or entry.endswith(":"):
                continue
            kind, fragments = parse_affix_group(entry)
            if kind == "term":
                terms.append((entry, "vocabulary"))
            elif fragments:
                self.affix_groups.append((kind, entry, fragments))
        super().__init__(terms)

    def limit(self, term: str) -> int:
        return 1 if len(term) <= 5 else 2

    def _extra_matches(self, text: str, existing: Sequence[LexicalMatch]) -> List[LexicalMatch]:
        seen = {(m.word.lower(), m.position) for m in existing}
        matches = []
        for kind, label, fragments in self.affix_groups:
            for fragment in fragments:
                escaped = re.escape(fragment)
                if kind == "prefix":
                    pattern = re.compile(rf"\b{escaped}\w+", re.IGNORECASE)
                else:
                    pattern = re.compile(rf"\b\w+{escaped}\b", re.IGNORECASE)
                for m in pattern.finditer(text):
                    key = (m.group(0).lower(), m.start())
                    if key in seen:
                        continue
                    seen.add(key)
                    matches.append(LexicalMatch(m.group(0), label, m.start(), kind, kind))
        return matches


def class_vocabulary_used(text: str, vocabulary: Sequence[str]) -> Union[List[str], str]:
    """Taught vocabulary found in ``text``, one entry per occurrence.

    Returns the bare ``NO_VOCABULARY_MATCHES`` string when the list is empty
    or nothing in the essay matches it.
    """
    if not vocabulary:
        return NO_VOCABULARY_MATCHES
    found = VocabularyMatcher(vocabulary).found_terms(text)
    return found or NO_VOCABULARY_MATCHES
