"""Retry utilities for LLM API calls."""

import time
from typing import Callable, TypeVar
from semdown.config.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def is_transient_error(error: Exception) -> bool:
    """
    Check if an error is transient and should be retried.

    Args:
        error: Exception to check

    Returns:
        True for timeouts, rate limits and unavailable-server responses
    """
    text = str(error).lower()
    status = getattr(error, "status_code", None)
    return "timeout" in text or "timed out" in text or status in (408, 429, 503, 504)


def retry_with_backoff(
    func: Callable[[], T],
    max_retries: int,
    base_delay: float,
    timeout_errors: tuple = (),
    operation_name: str = "operation",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Retry a function with exponential backoff.

    Args:
        func: Function to retry (no arguments)
        max_retries: Maximum number of attempts
        base_delay: Base delay in seconds, doubled on every retry
        timeout_errors: Tuple of timeout exception types (always retried)
        operation_name: Name of operation for logging
        sleep: Sleep function

    Returns:
        Result of function call

    Raises:
        Last exception if all retries fail or the error is not transient
    """
    for attempt in range(max_retries):
        try:
            return func()
        except Exception as e:
            retryable = isinstance(e, timeout_errors) or is_transient_error(e)
            if retryable and attempt < max_retries - 1:
                retry_delay = base_delay * (2 ** attempt)
                logger.warning(
                    f"{operation_name} failed on attempt {attempt + 1}/{max_retries}: {e}. "
                    f"Retrying in {retry_delay:.1f} seconds..."
                )
                sleep(retry_delay)
                continue
            logger.error(f"{operation_name} failed: {e}", exc_info=True)
            raise

    raise RuntimeError(f"{operation_name} failed after {max_retries} attempts")
