"""Transition word and class vocabulary matching."""

from .levenshtein import levenshtein
from .matcher import FuzzyMatcher, LexicalMatch
from .transitions import TRANSITION_TAXONOMY, TransitionMatcher, find_transitions
from .vocabulary import (
    NO_VOCABULARY_MATCHES,
    VocabularyMatcher,
    class_vocabulary_used,
    parse_affix_group,
)

__all__ = [
    "levenshtein",
    "FuzzyMatcher",
    "LexicalMatch",
    "TRANSITION_TAXONOMY",
    "TransitionMatcher",
    "find_transitions",
    "NO_VOCABULARY_MATCHES",
    "VocabularyMatcher",
    "class_vocabulary_used",
    "parse_affix_group",
]
