from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class Category(str, Enum):
    """Rubric category of an inline issue or a score line."""

    GRAMMAR = "grammar"
    VOCABULARY = "vocabulary"
    SPELLING = "spelling"
    MECHANICS = "mechanics"
    FLUENCY = "fluency"
    LAYOUT = "layout"
    CONTENT = "content"

    @property
    def style(self) -> "CategoryStyle":
        return CATEGORY_STYLES[self]

    @classmethod
    def coerce(cls, tag: Any) -> Optional["Category"]:
        """Map a free-form category tag to a Category, or None if unknown."""
        if isinstance(tag, Category):
            return tag
        if not isinstance(tag, str):
            return None
        key = tag.strip().lower().replace("_", "-").replace(" ", "-")
        try:
            return cls(key)
        except ValueError:
            return CATEGORY_ALIASES.get(key)


@dataclass(frozen=True)
class CategoryStyle:
    """Display metadata for a category."""
    label: str
    color: str
    background_color: str
    weight: int


CATEGORY_STYLES: Dict[Category, CategoryStyle] = {
    Category.GRAMMAR: CategoryStyle("Grammar", "#FF6B6B", "#FFE5E5", 15),
    Category.VOCABULARY: CategoryStyle("Vocabulary", "#4ECDC4", "#E8F8F7", 15),
    Category.SPELLING: CategoryStyle("Spelling", "#45B7D1", "#E3F2FD", 15),
    Category.MECHANICS: CategoryStyle("Mechanics & Punctuation", "#F7B731", "#FFF8E1", 15),
    Category.FLUENCY: CategoryStyle("Fluency", "#A855F7", "#F3E8FF", 10),
    Category.LAYOUT: CategoryStyle("Layout & Follow Specs", "#16A34A", "#DCFCE7", 15),
    Category.CONTENT: CategoryStyle("Content & Information", "#DC2626", "#FEE2E2", 15),
}

# Tags the models emit that are not canonical category names.
CATEGORY_ALIASES: Dict[str, Category] = {
    "mechanics-punctuation": Category.MECHANICS,
    "punctuation": Category.MECHANICS,
    "capitalization": Category.MECHANICS,
    "vocabulary-structure": Category.VOCABULARY,
    "non-suitable-words": Category.VOCABULARY,
    "word-choice": Category.VOCABULARY,
    "collocation": Category.VOCABULARY,
    "needs-rephrasing": Category.FLUENCY,
    "redundancy": Category.FLUENCY,
    "structure": Category.LAYOUT,
}


@dataclass(frozen=True)
class Offsets:
    """Half-open ``[start, end)`` range in UTF-16 code units."""
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid offsets: start={self.start}, end={self.end}")

    def to_dict(self) -> Dict[str, int]:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class Issue:
    """A single annotated span of essay text."""
    type: Category
    subtype: str
    message: str
    offsets: Offsets
    coaching_only: bool = False

    @property
    def start(self) -> int:
        return self.offsets.start

    @property
    def end(self) -> int:
        return self.offsets.end

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type.value,
            "subtype": self.subtype,
            "message": self.message,
            "offsets": self.offsets.to_dict(),
        }
        if self.coaching_only:
            data["coaching_only"] = True
        return data


@dataclass(frozen=True)
class ClassProfile:
    """Class settings an essay is graded against."""

    id: str
    name: str
    cefr_level: str
    vocabulary: Tuple[str, ...] = ()
    """Taught words, phrases and prefix/suffix markers, in teaching order."""

    grammar: Tuple[str, ...] = ()
    """Names of taught grammar structures."""

    temperature: float = 0.0
    """Grade temperature (-5..+5); each step shifts scores by 10% of the category maximum."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClassProfile":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            cefr_level=str(data.get("cefrLevel", data.get("cefr_level", "B1"))).upper(),
            vocabulary=tuple(v for v in (data.get("vocabulary") or []) if v and v.strip()),
            grammar=tuple(g for g in (data.get("grammar") or []) if g and g.strip()),
            temperature=float(data.get("temperature") or 0),
        )


@dataclass(frozen=True)
class CategoryScore:
    points: float
    out_of: float
    rationale: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"points": self.points, "out_of": self.out_of, "rationale": self.rationale}


@dataclass(frozen=True)
class ScoreTotal:
    points: float
    out_of: float

    def to_dict(self) -> Dict[str, Any]:
        return {"points": self.points, "out_of": self.out_of}


@dataclass(frozen=True)
class GradingResult:
    """Final annotation/score document for one essay."""
    meta: Dict[str, Any]
    scores: Dict[str, CategoryScore]
    total: ScoreTotal
    inline_issues: Tuple[Issue, ...]
    corrected_text_minimal: str = ""
    suggested_polish_one_sentence: str = ""
    teacher_notes: str = ""
    encouragement_next_steps: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], inline_issues: Tuple[Issue, ...]) -> "GradingResult":
        """Build a result from a reconciled document and its final issue list."""
        scores = {
            name: CategoryScore(
                points=score.get("points", 0),
                out_of=score.get("out_of", 0),
                rationale=score.get("rationale") or "",
            )
            for name, score in (data.get("scores") or {}).items()
            if isinstance(score, Mapping)
        }
        total_data = data.get("total") or {}
        steps = data.get("encouragement_next_steps") or ()
        if isinstance(steps, str):
            steps = (steps,)
        return cls(
            meta=dict(data.get("meta") or {}),
            scores=scores,
            total=ScoreTotal(
                points=total_data.get("points", 0),
                out_of=total_data.get("out_of", 0),
            ),
            inline_issues=tuple(inline_issues),
            corrected_text_minimal=data.get("corrected_text_minimal") or "",
            suggested_polish_one_sentence=data.get("suggested_polish_one_sentence") or "",
            teacher_notes=data.get("teacher_notes") or "",
            encouragement_next_steps=tuple(steps),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meta": dict(self.meta),
            "corrected_text_minimal": self.corrected_text_minimal,
            "suggested_polish_one_sentence": self.suggested_polish_one_sentence,
            "scores": {name: score.to_dict() for name, score in self.scores.items()},
            "total": self.total.to_dict(),
            "inline_issues": [issue.to_dict() for issue in self.inline_issues],
            "teacher_notes": self.teacher_notes,
            "encouragement_next_steps": list(self.encouragement_next_steps),
        }


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    role: MessageRole
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class LLMResponse:
    """Raw completion returned by a provider."""
    content: str
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    raw: Dict[str, Any] = field(default_factory=dict)


def messages_to_dicts(messages: List[Message]) -> List[Dict[str, str]]:
    return [m.to_dict() for m in messages]
