"""Prompt template loading.

Grading prompts live as plain text files in the top-level ``prompts/``
directory so they can be tuned without touching code. Templates use
``str.format`` placeholders; literal JSON braces are doubled.
"""

from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from .logging import get_logger

logger = get_logger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent.parent / "prompts"


@lru_cache(maxsize=32)
def load_prompt(name: str, prompts_dir: Optional[Path] = None) -> str:
    """Load a prompt template from file.

    Args:
        name: Prompt name (without .txt extension).
        prompts_dir: Optional custom prompts directory.

    Returns:
        Prompt template string.

    Raises:
        FileNotFoundError: If prompt file doesn't exist.
    """
    directory = prompts_dir or PROMPTS_DIR
    prompt_path = directory / f"{name}.txt"

    if not prompt_path.exists():
        raise FileNotFoundError(f"Prompt not found: {prompt_path}")

    with open(prompt_path, 'r', encoding='utf-8') as f:
        content = f.read()

    logger.debug(f"Loaded prompt: {name}")
    return content


def format_prompt(name: str, prompts_dir: Optional[Path] = None, **kwargs) -> str:
    """Load and format a prompt template with variables."""
    template = load_prompt(name, prompts_dir)
    return template.format(**kwargs)


def list_prompts(prompts_dir: Optional[Path] = None) -> Dict[str, Path]:
    """List available prompt templates as name -> path."""
    directory = prompts_dir or PROMPTS_DIR

    if not directory.exists():
        return {}

    return {path.stem: path for path in directory.glob("*.txt")}


def clear_prompt_cache():
    """Clear the prompt cache.

    Call this if prompts are modified at runtime.
    """
    load_prompt.cache_clear()
    logger.debug("Prompt cache cleared")
