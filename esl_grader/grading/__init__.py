"""Prompt building, response reconciliation and grading orchestration."""

from .prompt_builder import GradingPrompt, PromptBuilder, feedback_voice
from .scoring import (
    LENIENCY_MULTIPLIERS,
    apply_leniency,
    apply_temperature,
    leniency_multiplier,
    recompute_total,
    round_half_up,
)
from .reconciler import ResponseReconciler, reconcile, count_words, locate
from .grader import EssayGrader, GradingRequest, BatchOutcome

__all__ = [
    "GradingPrompt",
    "PromptBuilder",
    "feedback_voice",
    "LENIENCY_MULTIPLIERS",
    "apply_leniency",
    "apply_temperature",
    "leniency_multiplier",
    "recompute_total",
    "round_half_up",
    "ResponseReconciler",
    "reconcile",
    "count_words",
    "locate",
    "EssayGrader",
    "GradingRequest",
    "BatchOutcome",
]
