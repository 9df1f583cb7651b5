"""Prompt loading and rendering utilities."""

from .loader import PROMPTS_DIR, load_prompt, placeholders, render_prompt

__all__ = ["PROMPTS_DIR", "load_prompt", "placeholders", "render_prompt"]
