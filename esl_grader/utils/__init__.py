"""Utility modules for the grader."""

from .logging import (
    get_logger,
    setup_logging,
    set_request_id,
    get_request_id,
    log_llm_call,
)
from .parsing import strip_code_fences, parse_json_object
from .prompts import (
    load_prompt,
    format_prompt,
    list_prompts,
    clear_prompt_cache,
)

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    "set_request_id",
    "get_request_id",
    "log_llm_call",
    # Parsing
    "strip_code_fences",
    "parse_json_object",
    # Prompts
    "load_prompt",
    "format_prompt",
    "list_prompts",
    "clear_prompt_cache",
]
