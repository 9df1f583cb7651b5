"""Prompt templates shipped with the package."""

import string
from functools import lru_cache
from pathlib import Path
from typing import Any
from semdown.config.logging import get_logger

logger = get_logger(__name__)

PROMPTS_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """
    Load a prompt template by file name, e.g. 'resolver_system.txt'.

    Raises:
        FileNotFoundError: If no such template ships with the package
    """
    path = PROMPTS_DIR / name
    if not path.is_file():
        available = sorted(p.name for p in PROMPTS_DIR.glob("*.txt"))
        logger.error(f"Prompt template not found: {name}")
        raise FileNotFoundError(f"Prompt template '{name}' not found. Available: {', '.join(available)}")
    logger.debug(f"Loaded prompt template {name}")
    return path.read_text(encoding="utf-8")


def placeholders(template: str) -> set:
    """Names of the {PLACEHOLDER} fields in a template."""
    return {field for _, field, _, _ in string.Formatter().parse(template) if field}


def render_prompt(template: str, **values: Any) -> str:
    """
    Fill the {PLACEHOLDER} fields of a template; literal braces are doubled.

    Raises:
        ValueError: If a placeholder has no value
    """
    missing = placeholders(template) - set(values)
    if missing:
        raise ValueError(f"Prompt placeholders without a value: {', '.join(sorted(missing))}")
    return template.format(**values)
