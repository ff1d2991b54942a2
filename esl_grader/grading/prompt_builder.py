"""Prompt building for essay grading."""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from ..models import ClassProfile
from ..rubric import Rubric
from ..utils.logging import get_logger
from ..utils.prompts import format_prompt

logger = get_logger(__name__)

NO_VOCABULARY_LIST = "N/A (no list provided)"
NO_GRAMMAR_LIST = "N/A (no list provided)"


@dataclass
class GradingPrompt:
    """A complete prompt for one grading call."""
    system_prompt: str
    user_prompt: str

    def to_messages(self) -> List[Dict[str, str]]:
        """Convert to message format for LLM."""
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": self.user_prompt},
        ]


def _student_reference(nickname: Optional[str]) -> Optional[str]:
    if nickname and nickname.strip():
        nickname = nickname.strip()
        return nickname[0].upper() + nickname[1:]
    return None


def feedback_voice(nickname: Optional[str]) -> str:
    """Instructions for how feedback addresses the student."""
    name = _student_reference(nickname)
    if name:
        return (
            f'Address the student by their nickname "{name}" in teacher_notes and '
            f'encouragement, for example: "Nice work on your essay, {name}! To help '
            'you improve even more, let\'s focus on tense consistency." Always start '
            "positively, acknowledge effort, then coach."
        )
    return (
        'Refer to the writer as "the student" or address them directly as "you". '
        'Always start positively, for example: "Nice work on your essay! To help you '
        "improve even more, let's focus on tense consistency.\" Acknowledge effort, "
        "then coach."
    )


class PromptBuilder:
    """Builds the system and user prompts for grading an essay.

    The system prompt carries the rubric (CEFR strictness, zero rules,
    category bands, layout rules), the class vocabulary and grammar lists,
    grading policies and the JSON output schema. The user prompt carries the
    assignment, the essay and the counting instructions.
    """

    def __init__(self, rubric: Rubric, prompts_dir: Optional[Path] = None):
        self.rubric = rubric
        self.prompts_dir = prompts_dir

    def build(
        self,
        essay_text: str,
        profile: ClassProfile,
        assignment_prompt: str = "",
        student_nickname: Optional[str] = None,
    ) -> GradingPrompt:
        return GradingPrompt(
            system_prompt=self.build_system_prompt(profile, student_nickname),
            user_prompt=self.build_user_prompt(essay_text, profile, assignment_prompt),
        )

    def build_system_prompt(self, profile: ClassProfile, student_nickname: Optional[str] = None) -> str:
        level = self.rubric.level(profile.cefr_level)
        layout = self.rubric.layout_rules
        return format_prompt(
            "grading_system",
            prompts_dir=self.prompts_dir,
            cefr_level=profile.cefr_level,
            level_name=level.name,
            level_description=level.description,
            strictness_modifier=level.strictness_modifier,
            zero_rules=self._format_zero_rules(),
            category_bands=self._format_category_bands(),
            word_count_min=layout.target_word_count_min,
            word_count_max=layout.target_word_count_max,
            transitions_min=layout.transition_words_min,
            class_vocabulary=self._join(profile.vocabulary, NO_VOCABULARY_LIST),
            class_grammar=self._join(profile.grammar, NO_GRAMMAR_LIST),
            feedback_voice=feedback_voice(student_nickname),
            score_schema=self._format_score_schema(),
            total_weight=self.rubric.total_weight,
            category_keys=", ".join(self.rubric.categories),
        )

    def build_user_prompt(self, essay_text: str, profile: ClassProfile, assignment_prompt: str = "") -> str:
        return format_prompt(
            "grading_user",
            prompts_dir=self.prompts_dir,
            assignment_prompt=assignment_prompt.strip() or "(none given)",
            essay_text=essay_text,
            class_vocabulary=self._join(profile.vocabulary, NO_VOCABULARY_LIST),
            class_grammar=self._join(profile.grammar, NO_GRAMMAR_LIST),
            cefr_level=profile.cefr_level,
            class_name=profile.name or profile.id,
        )

    def _format_zero_rules(self) -> str:
        if not self.rubric.zero_rules:
            return "- (none)"
        return "\n".join(f"- {rule}" for rule in self.rubric.zero_rules)

    def _format_category_bands(self) -> str:
        blocks = []
        for category in self.rubric.categories.values():
            bands = "\n".join(f"  {band.range}: {band.description}" for band in category.bands)
            blocks.append(f"{category.name} ({category.weight}%):\n{bands}".rstrip())
        return "\n\n".join(blocks)

    def _format_score_schema(self) -> str:
        lines = [
            f'    "{key}": {{"points": 0, "out_of": {category.weight}, "rationale": "..."}}'
            for key, category in self.rubric.categories.items()
        ]
        return ",\n".join(lines)

    @staticmethod
    def _join(items, empty: str) -> str:
        return ", ".join(items) if items else empty
