"""Turns a raw grading completion into a final GradingResult.

The model's JSON is trusted for scores and prose, but not for counts or
positions: usage lists are recomputed locally, inline issues are re-anchored
in the essay, local detectors fill in what the model missed, and scores get
the CEFR leniency multiplier.
"""

import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..detection import DEFAULT_PASSES, Detector, Utf16Index, run_detectors
from ..errors import ResponseParseError
from ..lexical import TransitionMatcher, class_vocabulary_used
from ..models import Category, ClassProfile, GradingResult, Issue, Offsets
from ..utils.logging import get_logger
from ..utils.parsing import parse_json_object
from .scoring import apply_leniency, recompute_total

logger = get_logger(__name__)

_MESSAGE_ARROW = re.compile(r"\s*(?:→|->)\s*")


def count_words(text: str) -> int:
    return len(text.split())


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _raw_offsets(raw: Dict[str, Any]) -> Tuple[Optional[int], Optional[int]]:
    offsets = raw.get("offsets")
    if isinstance(offsets, dict):
        return _as_int(offsets.get("start")), _as_int(offsets.get("end"))
    return _as_int(raw.get("start")), _as_int(raw.get("end"))


def _issue_message(raw: Dict[str, Any]) -> str:
    message = raw.get("message")
    if isinstance(message, str) and message.strip():
        return message.strip()
    text, correction = raw.get("text"), raw.get("correction")
    if isinstance(text, str) and isinstance(correction, str) and text and correction:
        return f"{text}→{correction}"
    explanation = raw.get("explanation")
    return explanation.strip() if isinstance(explanation, str) else ""


def _anchor_candidates(raw: Dict[str, Any], message: str) -> List[str]:
    """Strings that should appear verbatim in the essay at the issue's span."""
    candidates = []
    for key in ("quote", "text"):
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            candidates.append(value.strip())
    parts = _MESSAGE_ARROW.split(message, maxsplit=1)
    if len(parts) == 2 and parts[0].strip():
        candidates.append(parts[0].strip().strip('"\''))
    return candidates


def locate(needle: str, text: str, near: Optional[int] = None) -> Optional[int]:
    """Code-point index of ``needle`` in ``text``.

    Exact-case occurrences win over case-insensitive ones; among several,
    the one closest to ``near`` is chosen.
    """
    if not needle:
        return None
    for flags in (0, re.IGNORECASE):
        positions = [m.start() for m in re.finditer(re.escape(needle), text, flags)]
        if positions:
            if near is None:
                return positions[0]
            return min(positions, key=lambda p: abs(p - near))
    return None


class ResponseReconciler:
    """Post-processes grading completions for one rubric/detector setup."""

    def __init__(
        self,
        transition_matcher: Optional[TransitionMatcher] = None,
        passes: Sequence[Detector] = DEFAULT_PASSES,
    ):
        self.transition_matcher = transition_matcher or TransitionMatcher()
        self.passes = tuple(passes)

    def reconcile(self, raw_llm_text: str, essay_text: str, profile: ClassProfile) -> GradingResult:
        """Build the final result for one essay.

        Raises:
            ResponseParseError: If the completion is not a JSON object.
        """
        try:
            data = parse_json_object(raw_llm_text or "")
        except ValueError as e:
            raise ResponseParseError(f"Failed to parse grading response: {e}", raw_llm_text) from e

        index = Utf16Index(essay_text)
        llm_issues = self.sanitize_issues(data.get("inline_issues"), essay_text, index)

        meta = data.get("meta") if isinstance(data.get("meta"), dict) else {}
        meta["transition_words_found"] = self.transition_matcher.found_terms(essay_text)
        meta["class_vocabulary_used"] = class_vocabulary_used(essay_text, profile.vocabulary)
        meta["word_count"] = count_words(essay_text)
        data["meta"] = meta

        issues = run_detectors(essay_text, seed=llm_issues, passes=self.passes)

        scores = self._normalize_scores(data.get("scores"))
        apply_leniency(scores, profile.cefr_level)
        total = data.get("total") if isinstance(data.get("total"), dict) else {}
        recompute_total(scores, total)
        data["scores"] = scores
        data["total"] = total

        logger.info(
            "Reconciled grading response",
            extra_data={
                "profile_id": profile.id,
                "llm_issues": len(llm_issues),
                "local_issues": len(issues) - len(llm_issues),
                "total_points": total["points"],
            }
        )
        return GradingResult.from_dict(data, issues)

    def sanitize_issues(self, raw_issues: Any, essay_text: str, index: Optional[Utf16Index] = None) -> Tuple[Issue, ...]:
        """Coerce the model's inline issues into anchored Issue records.

        Issues whose offsets are missing or out of range are re-anchored by
        searching for their quoted text; issues that cannot be anchored are
        dropped.
        """
        index = index or Utf16Index(essay_text)
        if not isinstance(raw_issues, list):
            if raw_issues is not None:
                logger.warning("inline_issues is not a list; ignoring it")
            return ()

        issues = []
        for raw in raw_issues:
            if not isinstance(raw, dict):
                logger.warning(f"Skipping malformed inline issue: {raw!r}")
                continue
            issue = self._sanitize_issue(raw, essay_text, index)
            if issue is not None:
                issues.append(issue)
        return tuple(issues)

    def _sanitize_issue(self, raw: Dict[str, Any], essay_text: str, index: Utf16Index) -> Optional[Issue]:
        tag = raw.get("type", raw.get("category"))
        category = Category.coerce(tag)
        if category is None:
            logger.warning(f"Unknown issue category '{tag}', using grammar", extra_data={"tag": tag})
            category = Category.GRAMMAR

        message = _issue_message(raw)
        subtype = raw.get("subtype")
        subtype = subtype.strip() if isinstance(subtype, str) and subtype.strip() else "general"

        start, end = _raw_offsets(raw)
        if start is None or end is None or not (0 <= start < end <= len(index)):
            offsets = self._repair_offsets(raw, message, essay_text, index, start)
            if offsets is None:
                logger.warning(
                    "Dropping inline issue that cannot be anchored",
                    extra_data={"message": message, "start": start, "end": end}
                )
                return None
        else:
            offsets = Offsets(start, end)

        return Issue(
            type=category,
            subtype=subtype,
            message=message,
            offsets=offsets,
            coaching_only=bool(raw.get("coaching_only", False)),
        )

    @staticmethod
    def _repair_offsets(
        raw: Dict[str, Any],
        message: str,
        essay_text: str,
        index: Utf16Index,
        hint: Optional[int],
    ) -> Optional[Offsets]:
        near = index.from_utf16(hint) if hint is not None and 0 <= hint <= len(index) else None
        for needle in _anchor_candidates(raw, message):
            position = locate(needle, essay_text, near)
            if position is not None:
                logger.debug(f"Re-anchored inline issue on '{needle}'")
                return index.offsets(position, position + len(needle))
        return None

    @staticmethod
    def _normalize_scores(raw_scores: Any) -> Dict[str, Dict[str, Any]]:
        """Copy score entries, renaming aliased category keys to canonical ones."""
        if not isinstance(raw_scores, dict):
            logger.warning("Grading response has no scores object")
            return {}
        scores: Dict[str, Dict[str, Any]] = {}
        for key, score in raw_scores.items():
            if not isinstance(score, dict):
                logger.warning(f"Skipping malformed score for '{key}'")
                continue
            category = Category.coerce(key)
            name = category.value if category is not None else key
            if name in scores and key != name:
                continue
            scores[name] = dict(score)
        return scores


def reconcile(raw_llm_text: str, essay_text: str, profile: ClassProfile) -> GradingResult:
    """Reconcile with the default matchers and detector passes."""
    return ResponseReconciler().reconcile(raw_llm_text, essay_text, profile)


def issues_to_dicts(issues: Iterable[Issue]) -> List[Dict[str, Any]]:
    return [issue.to_dict() for issue in issues]
