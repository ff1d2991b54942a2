"""Score adjustments applied after the LLM has graded an essay."""

import math
from dataclasses import replace
from typing import Any, Dict, MutableMapping

from ..models import GradingResult, ScoreTotal
from ..utils.logging import get_logger

logger = get_logger(__name__)

# Raw-score multiplier per CEFR level; lower levels are graded more leniently.
LENIENCY_MULTIPLIERS: Dict[str, float] = {
    "A1": 1.30,
    "A2": 1.25,
    "B1": 1.20,
    "B2": 1.15,
    "C1": 1.05,
    "C2": 1.00,
}
DEFAULT_LENIENCY_LEVEL = "C1"

TEMPERATURE_STEP = 0.1
MIN_TEMPERATURE = -5.0
MAX_TEMPERATURE = 5.0


def round_half_up(value: float) -> int:
    # 10 * 1.15 is 11.4999... in binary floating point
    return int(math.floor(round(value, 9) + 0.5))


def leniency_multiplier(cefr_level: str) -> float:
    multiplier = LENIENCY_MULTIPLIERS.get((cefr_level or "").upper())
    if multiplier is None:
        logger.warning(
            f"Unknown CEFR level '{cefr_level}', using {DEFAULT_LENIENCY_LEVEL} leniency",
            extra_data={"cefr_level": cefr_level}
        )
        multiplier = LENIENCY_MULTIPLIERS[DEFAULT_LENIENCY_LEVEL]
    return multiplier


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def apply_leniency(scores: MutableMapping[str, Dict[str, Any]], cefr_level: str) -> None:
    """Scale every category score in place: ``min(out_of, round(points * m))``."""
    multiplier = leniency_multiplier(cefr_level)
    for score in scores.values():
        points = _number(score.get("points"))
        adjusted = max(0, round_half_up(points * multiplier))
        if score.get("out_of") is not None:
            adjusted = min(round_half_up(_number(score["out_of"])), adjusted)
        score["points"] = adjusted


def recompute_total(scores: MutableMapping[str, Dict[str, Any]], total: MutableMapping[str, Any]) -> None:
    """Set ``total.points`` to the category sum; default ``total.out_of`` to the sum of maxima."""
    total["points"] = sum(_number(s.get("points")) for s in scores.values())
    if not _number(total.get("out_of")):
        total["out_of"] = sum(_number(s.get("out_of")) for s in scores.values())


def clamp_temperature(temperature: float) -> float:
    return max(MIN_TEMPERATURE, min(MAX_TEMPERATURE, temperature))


def apply_temperature(result: GradingResult, temperature: float) -> GradingResult:
    """Shift every category by ``out_of * 0.1 * temperature`` points.

    Scores are clamped to ``[0, out_of]`` and rounded half-up; the total is
    recomputed. A temperature of 0 returns the result unchanged.
    """
    if not temperature:
        return result
    temperature = clamp_temperature(temperature)

    scores = {}
    for name, score in result.scores.items():
        adjusted = score.points + score.out_of * TEMPERATURE_STEP * temperature
        adjusted = max(0, min(score.out_of, adjusted))
        scores[name] = replace(score, points=round_half_up(adjusted))

    total = ScoreTotal(
        points=sum(score.points for score in scores.values()),
        out_of=result.total.out_of,
    )
    logger.debug(
        f"Applied grade temperature {temperature}",
        extra_data={"before": result.total.points, "after": total.points}
    )
    return replace(result, scores=scores, total=total)
