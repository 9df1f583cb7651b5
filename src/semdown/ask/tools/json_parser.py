"""JSON extraction from LLM output."""

import json
import re
from typing import Any, Dict
from semdown.config.logging import get_logger

logger = get_logger(__name__)

_CODE_BLOCK = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


class JSONParseError(Exception):
    """Raised when JSON parsing fails."""


def _fix_common_json_issues(json_str: str) -> str:
    """Remove trailing commas and quote single-quoted keys."""
    fixed = re.sub(r",(\s*[}\]])", r"\1", json_str)
    fixed = re.sub(r"'(\w+)'\s*:", r'"\1":', fixed)
    if fixed != json_str:
        logger.debug("Fixed common JSON issues (trailing commas, quoted keys)")
    return fixed


def _loads(json_str: str, errors: list, label: str):
    for candidate in (json_str, _fix_common_json_issues(json_str)):
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError as e:
            errors.append(f"{label}: {e}")
            continue
        if isinstance(value, dict):
            return value
        errors.append(f"{label}: expected a JSON object")
        return None
    return None


def _balanced_object(text: str):
    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    for i in range(start, len(text)):
        if text[i] == "{":
            depth += 1
        elif text[i] == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def extract_json(text: str) -> Dict[str, Any]:
    """
    Extract a JSON object from LLM output text.

    Handles markdown code blocks and explanatory text around the object.

    Raises:
        JSONParseError: If no valid JSON object can be extracted
    """
    errors: list = []

    match = _CODE_BLOCK.search(text)
    if match:
        value = _loads(match.group(1), errors, "Code block")
        if value is not None:
            return value

    obj = _balanced_object(text)
    if obj is not None:
        value = _loads(obj, errors, "JSON object")
        if value is not None:
            return value

    value = _loads(text.strip(), errors, "Full text")
    if value is not None:
        return value

    error_msg = f"Could not extract valid JSON from LLM output. Errors: {'; '.join(errors[-3:])}"
    logger.error(error_msg)
    logger.debug(f"Text content (first 1000 chars): {text[:1000]}...")
    raise JSONParseError(error_msg)
