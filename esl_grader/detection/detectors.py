"""Deterministic error detectors.

Each detector scans raw essay text and returns candidate issues with
code-point offsets. Detectors run as an ordered pipeline of passes over an
immutable accumulator seeded with the LLM's own issues; a candidate is kept
only when no issue already in the accumulator overlaps it.
"""

import re
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..models import Category, Issue, Offsets
from ..utils.logging import get_logger
from .offsets import Utf16Index, is_covered

logger = get_logger(__name__)

Detector = Callable[[str], List[Issue]]

_INTRO_WORDS = r"then|unfortunately|finally|however"

_STANDALONE_I = re.compile(r"(?<!\S)i(?=\s|$)")
_DAY_NAME = re.compile(
    r"\b(monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b", re.IGNORECASE
)
# Intro phrase, whitespace, then the start of a new clause: a capitalized
# word, another intro adverb, or a lowercase "i" (sentence-initial phrases only).
_INTRO_PHRASE = re.compile(
    rf"\b(?i:(on \w+|{_INTRO_WORDS}))"
    rf"(?=\s+(?:[A-Z]|(?P<lower_i>i\b)|(?i:(?:{_INTRO_WORDS})\b)))"
)
_SENTENCE_END = ".!?"
_PREPOSITION = re.compile(
    r"\b(pizzas|lunch|dinner|breakfast)\s+to\s+(lunch|dinner|breakfast|eat)\b", re.IGNORECASE
)
_TO_BETWEEN = re.compile(r"\s+to\s+", re.IGNORECASE)
_MEASUREMENT = re.compile(r"\b(\d+)(lts?|kms?|hrs?)\b", re.IGNORECASE)
_WORD_ORDER = re.compile(
    r"\bI\s+(only|always|never|usually)\s+(could|can|would|will)\b", re.IGNORECASE
)
_TO_CAN = re.compile(r"\bto\s+can\b", re.IGNORECASE)
_MODAL_TO = re.compile(r"\b(must|should)\s+to\b", re.IGNORECASE)
_TOO_TO_CAN = re.compile(r"\btoo\s+([a-z]+)\s+to\s+can\s+([a-z]+)\b", re.IGNORECASE)

# wrong, correct, required following word (None: anywhere)
COMMON_MISSPELLINGS: Tuple[Tuple[str, str, Optional[str]], ...] = (
    ("wekend", "weekend", None),
    ("recieve", "receive", None),
    ("seperate", "separate", None),
    ("definately", "definitely", None),
    ("hole", "whole", "soda|pizza|meal"),
)


def _issue(category: Category, subtype: str, message: str, start: int, end: int,
           coaching_only: bool = False) -> Issue:
    return Issue(
        type=category,
        subtype=subtype,
        message=message,
        offsets=Offsets(start, end),
        coaching_only=coaching_only,
    )


def detect_lowercase_i(text: str) -> List[Issue]:
    """Standalone lowercase pronoun ``i``."""
    return [
        _issue(Category.MECHANICS, "capitalization", "i→I", m.start(), m.end())
        for m in _STANDALONE_I.finditer(text)
    ]


def detect_day_names(text: str) -> List[Issue]:
    """Day names that are not written in title case.

    All-caps names are left alone.
    """
    issues = []
    for m in _DAY_NAME.finditer(text):
        day = m.group(1)
        proper = day.capitalize()
        if day != proper and any(ch.islower() for ch in day):
            issues.append(_issue(
                Category.MECHANICS, "capitalization", f"{day}→{proper}", m.start(1), m.end(1)
            ))
    return issues


def _starts_sentence(text: str, position: int) -> bool:
    before = text[:position].rstrip()
    return not before or before[-1] in _SENTENCE_END


def detect_intro_commas(text: str) -> List[Issue]:
    """Missing comma after an introductory phrase.

    The span is the single character right after the phrase, where the
    comma belongs.
    """
    issues = []
    for m in _INTRO_PHRASE.finditer(text):
        if m.group("lower_i") and not _starts_sentence(text, m.start(1)):
            continue
        phrase = m.group(1)
        comma_pos = m.end(1)
        issues.append(_issue(
            Category.MECHANICS, "comma", f'Add comma after "{phrase}"', comma_pos, comma_pos + 1
        ))
    return issues


def detect_prepositions(text: str) -> List[Issue]:
    """Meal nouns joined with "to" where "for" is meant."""
    issues = []
    for m in _PREPOSITION.finditer(text):
        phrase = m.group(0)
        corrected = _TO_BETWEEN.sub(" for ", phrase, count=1)
        issues.append(_issue(
            Category.GRAMMAR, "preposition", f"{phrase}→{corrected}", m.start(), m.end()
        ))
    return issues


def expand_measurement(number: str, unit: str) -> str:
    """Spell out an abbreviated measurement.

    >>> expand_measurement("1", "kms")
    '1 kilometer'
    """
    unit = unit.lower()
    plural = "" if number == "1" else "s"
    if unit.startswith("lt"):
        return f"{number}-liter"
    if unit.startswith("km"):
        return f"{number} kilometer{plural}"
    return f"{number} hour{plural}"


def detect_measurements(text: str) -> List[Issue]:
    issues = []
    for m in _MEASUREMENT.finditer(text):
        corrected = expand_measurement(m.group(1), m.group(2))
        issues.append(_issue(
            Category.SPELLING, "abbreviation", f"{m.group(0)}→{corrected}", m.start(), m.end()
        ))
    return issues


def detect_word_order(text: str) -> List[Issue]:
    """Frequency adverb placed before a modal ("I only can" -> "I can only").

    The span covers the adverb and modal only, leaving the pronoun free for
    the capitalization pass.
    """
    issues = []
    for m in _WORD_ORDER.finditer(text):
        adverb, modal = m.group(1), m.group(2)
        phrase = text[m.start(1):m.end()]
        issues.append(_issue(
            Category.GRAMMAR, "word_order", f"{phrase}→{modal} {adverb}", m.start(1), m.end()
        ))
    return issues


def detect_misspellings(text: str) -> List[Issue]:
    """Known misspellings; context-gated entries flag only the misspelled word."""
    issues = []
    for wrong, correct, context in COMMON_MISSPELLINGS:
        if context:
            pattern = re.compile(rf"\b({wrong})\s+(?:{context})\b", re.IGNORECASE)
        else:
            pattern = re.compile(rf"\b({wrong})\b", re.IGNORECASE)
        for m in pattern.finditer(text):
            issues.append(_issue(
                Category.SPELLING, "misspelling", f"{m.group(1)}→{correct}", m.start(1), m.end(1)
            ))
    return issues


def detect_modal_misuse(text: str) -> List[Issue]:
    """Modal verbs used with an infinitive marker.

    "too ADJ to can VERB" additionally gets a coaching-only word-choice
    flag over the whole phrase, suggesting "very" when no excess is meant.
    """
    issues = []
    for m in _TO_CAN.finditer(text):
        issues.append(_issue(
            Category.GRAMMAR, "modal", f"{m.group(0)}→to be able to", m.start(), m.end()
        ))
    for m in _MODAL_TO.finditer(text):
        issues.append(_issue(
            Category.GRAMMAR, "modal", f"{m.group(0)}→{m.group(1)}", m.start(), m.end()
        ))
    for m in _TOO_TO_CAN.finditer(text):
        phrase = m.group(0)
        rest = phrase[m.start(1) - m.start():]
        suggestion = "very " + _TO_CAN.sub("to be able to", rest, count=1)
        issues.append(_issue(
            Category.VOCABULARY, "word_choice", f"{phrase}→{suggestion}",
            m.start(), m.end(), coaching_only=True,
        ))
    return issues


DEFAULT_PASSES: Tuple[Detector, ...] = (
    detect_lowercase_i,
    detect_day_names,
    detect_intro_commas,
    detect_prepositions,
    detect_measurements,
    detect_word_order,
    detect_misspellings,
    detect_modal_misuse,
)


def apply_pass(
    detector: Detector,
    text: str,
    claimed: Tuple[Issue, ...],
    index: Optional[Utf16Index] = None,
) -> Tuple[Issue, ...]:
    """Run one detector and return the accumulator extended with its new issues.

    Candidates are checked against ``claimed`` as passed in, so candidates
    from the same pass never suppress each other.
    """
    index = index or Utf16Index(text)
    added = []
    for candidate in detector(text):
        offsets = index.offsets(candidate.start, candidate.end)
        if is_covered(offsets.start, offsets.end, claimed):
            continue
        added.append(replace(candidate, offsets=offsets))

    if added:
        logger.debug(
            f"{detector.__name__} added {len(added)} issue(s)",
            extra_data={"messages": [issue.message for issue in added]}
        )
    return claimed + tuple(added)


def run_detectors(
    text: str,
    seed: Iterable[Issue] = (),
    passes: Sequence[Detector] = DEFAULT_PASSES,
) -> Tuple[Issue, ...]:
    """Thread the accumulator through every pass in order."""
    index = Utf16Index(text)
    claimed = tuple(seed)
    for detector in passes:
        claimed = apply_pass(detector, text, claimed, index)
    return claimed
