"""Transition word detection."""

from typing import Dict, Iterable, List, Optional, Tuple

from .matcher import FuzzyMatcher

TRANSITION_TAXONOMY: Dict[str, Tuple[str, ...]] = {
    "sequence": (
        "first", "firstly", "second", "secondly", "third", "thirdly", "then", "next",
        "after that", "afterwards", "before that", "finally", "lastly", "meanwhile",
        "later", "eventually", "at first", "in the end",
    ),
    "addition": (
        "also", "furthermore", "moreover", "in addition", "besides", "additionally",
        "as well as", "not only",
    ),
    "contrast": (
        "however", "although", "but", "nevertheless", "on the other hand", "while",
        "whereas", "even though", "instead", "despite", "in contrast", "on the contrary",
    ),
    "causality": (
        "because", "therefore", "thus", "consequently", "as a result", "so", "since",
        "due to", "that is why", "for this reason", "hence",
    ),
    "example": (
        "for example", "for instance", "such as", "in particular", "specifically",
    ),
    "conclusion": (
        "in conclusion", "to summarize", "to sum up", "in summary", "overall",
        "in short", "all in all", "to conclude",
    ),
    "comparison": (
        "similarly", "likewise", "in the same way", "compared to", "just like", "equally",
    ),
    "frequency": (
        "always", "usually", "often", "sometimes", "never", "rarely", "generally",
        "every day", "once a week",
    ),
}


def _taxonomy_terms(taxonomy: Dict[str, Iterable[str]]) -> List[Tuple[str, str]]:
    return [(term, category) for category, terms in taxonomy.items() for term in terms]


class TransitionMatcher(FuzzyMatcher):
    """Finds transition words and phrases, tolerating small misspellings."""

    window = 10

    def __init__(self, taxonomy: Optional[Dict[str, Iterable[str]]] = None):
        super().__init__(_taxonomy_terms(taxonomy or TRANSITION_TAXONOMY))

    def limit(self, term: str) -> int:
        return 1 if len(term) <= 4 else 2


def find_transitions(text: str) -> List[str]:
    return TransitionMatcher().found_terms(text)
