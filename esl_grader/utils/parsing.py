"""Helpers for turning raw LLM completions into JSON documents."""

import json
import re
from typing import Any, Dict

_LEADING_FENCE = re.compile(r'^\s*```[\w-]*[ \t]*\n?')
_TRAILING_FENCE = re.compile(r'\n?[ \t]*```\s*$')


def strip_code_fences(text: str) -> str:
    """Remove a Markdown code fence wrapped around the whole completion.

    Only the leading ```/```json marker and the trailing ``` marker are
    removed; fences inside the document are left alone.
    """
    if not text:
        return ""
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def parse_json_object(text: str) -> Dict[str, Any]:
    """Parse a fence-wrapped JSON object.

    Raises:
        ValueError: If the content is not valid JSON or not a JSON object.
            ``json.JSONDecodeError`` is a subclass, so callers can catch
            ``ValueError`` for both cases.
    """
    cleaned = strip_code_fences(text)
    data = json.loads(cleaned)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data
