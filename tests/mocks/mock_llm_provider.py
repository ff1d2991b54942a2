"""Mock LLM Provider for testing.

Provides canned grading completions to avoid API calls in tests.
"""

import json
from typing import Any, Dict, List, Optional


def make_grading_response(
    scores: Optional[Dict[str, Dict[str, Any]]] = None,
    inline_issues: Optional[List[Dict[str, Any]]] = None,
    fenced: bool = False,
    **extra: Any
) -> str:
    """Build a grading completion in the shape the models return."""
    if scores is None:
        scores = {
            "grammar": {"points": 10, "out_of": 15, "rationale": "Good effort."},
            "vocabulary": {"points": 10, "out_of": 15, "rationale": "Nice words."},
            "spelling": {"points": 12, "out_of": 15, "rationale": "Mostly right."},
            "mechanics": {"points": 9, "out_of": 15, "rationale": "Check capitals."},
            "fluency": {"points": 7, "out_of": 10, "rationale": "Flows well."},
            "layout": {"points": 11, "out_of": 15, "rationale": "Add transitions."},
            "content": {"points": 12, "out_of": 15, "rationale": "On topic."},
        }
    document = {
        "meta": {
            "word_count": 999,
            "transition_words_found": ["made", "up"],
            "class_vocabulary_used": ["hallucinated"],
            "grammar_structures_used": ["Past Simple"],
        },
        "corrected_text_minimal": "On Friday, I did homework.",
        "suggested_polish_one_sentence": "Last Friday, I finished my homework.",
        "scores": scores,
        "total": {"points": 0, "out_of": 100},
        "inline_issues": inline_issues or [],
        "teacher_notes": "Clear story.",
        "encouragement_next_steps": ["Use past tense", "Add commas"],
    }
    document.update(extra)
    content = json.dumps(document, ensure_ascii=False)
    if fenced:
        return f"```json\n{content}\n```"
    return content


class MockLLMProvider:
    """Mock LLM provider that returns pre-recorded responses."""

    provider_name = "mock"

    def __init__(
        self,
        responses: Optional[List[str]] = None,
        default_response: Optional[str] = None,
        fail_on: Optional[Dict[str, Exception]] = None
    ):
        """Initialize mock LLM provider.

        Args:
            responses: Completions returned in order, one per call.
            default_response: Returned once ``responses`` is exhausted.
            fail_on: Maps a substring of the user prompt to an exception
                raised when the prompt contains it.
        """
        self.call_count = 0
        self.call_history = []
        self.responses = list(responses or [])
        self.default_response = default_response or make_grading_response()
        self.fail_on = fail_on or {}

    def call(
        self,
        system_prompt: str = "",
        user_prompt: str = "",
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        require_json: bool = False
    ) -> str:
        self.call_count += 1
        self.call_history.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "require_json": require_json,
        })

        for marker, error in self.fail_on.items():
            if marker in user_prompt:
                raise error

        if self.responses:
            return self.responses.pop(0)
        return self.default_response

    def get_usage_stats(self) -> Dict[str, int]:
        return {
            "total_input_tokens": 0,
            "total_output_tokens": 0,
            "total_tokens": 0,
            "total_calls": self.call_count,
        }
