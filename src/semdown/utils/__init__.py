"""Utility functions for common operations."""

from .model_io import load_model_text, write_artifact, artifact_filename
from .error_logging import log_error

__all__ = [
    "load_model_text",
    "write_artifact",
    "artifact_filename",
    "log_error",
]
