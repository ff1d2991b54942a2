"""Grading rubric loading."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .errors import RubricError
from .utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CEFR_LEVEL = "C1"


@dataclass(frozen=True)
class RubricBand:
    range: str
    description: str


@dataclass(frozen=True)
class RubricCategory:
    key: str
    name: str
    weight: int
    bands: Tuple[RubricBand, ...] = ()


@dataclass(frozen=True)
class CEFRLevel:
    code: str
    name: str
    description: str
    strictness_modifier: float = 1.0


@dataclass(frozen=True)
class LayoutRules:
    target_word_count_min: int = 100
    target_word_count_max: int = 150
    transition_words_min: int = 3


@dataclass(frozen=True)
class Rubric:
    """Scoring categories, CEFR strictness levels and class-wide rules."""
    categories: Dict[str, RubricCategory]
    cefr_levels: Dict[str, CEFRLevel]
    zero_rules: Tuple[str, ...] = ()
    layout_rules: LayoutRules = field(default_factory=LayoutRules)

    @property
    def total_weight(self) -> int:
        return sum(c.weight for c in self.categories.values())

    def level(self, code: str) -> CEFRLevel:
        """CEFR level info, falling back to C1 for unknown codes."""
        info = self.cefr_levels.get((code or "").upper())
        if info is not None:
            return info
        logger.warning(
            f"Unknown CEFR level '{code}', using {DEFAULT_CEFR_LEVEL}",
            extra_data={"cefr_level": code}
        )
        fallback = self.cefr_levels.get(DEFAULT_CEFR_LEVEL)
        if fallback is None:
            raise RubricError(f"Rubric defines no {DEFAULT_CEFR_LEVEL} level to fall back on")
        return fallback

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rubric":
        try:
            categories = {
                key: RubricCategory(
                    key=key,
                    name=cat.get("name", key.title()),
                    weight=int(cat["weight"]),
                    bands=tuple(
                        RubricBand(range=str(b["range"]), description=b["description"])
                        for b in cat.get("bands", [])
                    ),
                )
                for key, cat in data["categories"].items()
            }
            cefr_levels = {
                code.upper(): CEFRLevel(
                    code=code.upper(),
                    name=info.get("name", code),
                    description=info.get("description", ""),
                    strictness_modifier=float(info.get("strictness_modifier", 1.0)),
                )
                for code, info in data.get("cefr_levels", {}).items()
            }
            layout = data.get("layout_rules", {})
            layout_rules = LayoutRules(
                target_word_count_min=int(layout.get("target_word_count_min", 100)),
                target_word_count_max=int(layout.get("target_word_count_max", 150)),
                transition_words_min=int(layout.get("transition_words_min", 3)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise RubricError(f"Malformed rubric: {e}") from e

        if not categories:
            raise RubricError("Rubric defines no categories")

        return cls(
            categories=categories,
            cefr_levels=cefr_levels,
            zero_rules=tuple(data.get("zero_rules", [])),
            layout_rules=layout_rules,
        )


def load_rubric(path: Union[str, Path]) -> Rubric:
    """Load a rubric from a JSON file.

    Raises:
        RubricError: If the file is missing, not JSON, or malformed.
    """
    path = Path(path)
    if not path.exists():
        raise RubricError(f"Rubric file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise RubricError(f"Invalid JSON in rubric file {path}: {e}") from e

    rubric = Rubric.from_dict(data)
    logger.debug(f"Loaded rubric from {path}", extra_data={"categories": len(rubric.categories)})
    return rubric
