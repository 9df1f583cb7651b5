"""Error logging utilities for compilation and generation."""

import traceback
from typing import Any, Dict, Optional
from semdown.config.logging import get_logger

logger = get_logger(__name__)


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    operation: Optional[str] = None,
    artifact: Optional[str] = None,
    dialect: Optional[str] = None,
    log_level: str = "error",
) -> None:
    """
    Log an error with its type, message, context and traceback.

    Args:
        error: The exception that occurred
        context: Additional context dictionary (e.g., {'entities': 3})
        operation: Description of the operation being performed
        artifact: Artifact kind being generated
        dialect: Target dialect
        log_level: Logging level ('error', 'warning', 'critical')
    """
    error_type = type(error).__name__

    context_parts = []
    if operation:
        context_parts.append(f"Operation: {operation}")
    if artifact:
        context_parts.append(f"Artifact: {artifact}")
    if dialect:
        context_parts.append(f"Dialect: {dialect}")
    if context:
        context_parts.append("Context: " + ", ".join(f"{k}={v}" for k, v in context.items()))

    error_msg = f"[{error_type}] {error}"
    if context_parts:
        error_msg += " | " + " | ".join(context_parts)

    level = log_level.lower()
    if level == "critical":
        logger.critical(error_msg, exc_info=error)
    elif level == "warning":
        logger.warning(error_msg, exc_info=error)
    else:
        logger.error(error_msg, exc_info=error)

    diagnostics = getattr(error, "diagnostics", None)
    if diagnostics:
        logger.debug(f"{len(diagnostics)} diagnostics recorded before the failure")

    logger.debug(
        f"Full traceback for {error_type}:\n"
        + "".join(traceback.format_exception(type(error), error, error.__traceback__))
    )
