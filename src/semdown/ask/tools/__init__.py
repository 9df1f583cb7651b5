"""Helpers for the LLM resolver."""

from .json_parser import JSONParseError, extract_json
from .retry import is_transient_error, retry_with_backoff

__all__ = ["JSONParseError", "extract_json", "is_transient_error", "retry_with_backoff"]
