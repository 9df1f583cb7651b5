"""OpenAI-compatible chat client."""

from typing import Dict, List, Optional
from semdown.config.settings import get_settings
from semdown.config.logging import get_logger
from .retry import retry_with_backoff

logger = get_logger(__name__)

_openai_client: Optional[object] = None


def _get_openai_client():
    """Get or create the global OpenAI client (OpenAI or a local compatible endpoint)."""
    global _openai_client
    if _openai_client is None:
        from openai import OpenAI

        settings = get_settings()
        if settings.llm_url:
            _openai_client = OpenAI(
                base_url=settings.llm_url,
                api_key=settings.openai_api_key or "not-needed",
                timeout=settings.llm_timeout,
            )
        elif settings.openai_api_key:
            _openai_client = OpenAI(api_key=settings.openai_api_key, timeout=settings.llm_timeout)
        else:
            raise ValueError("No LLM API configured. Set OPENAI_API_KEY/MODEL_NAME or LLM_URL/MODEL in .env")
        logger.debug(f"Initialized OpenAI client with timeout={settings.llm_timeout}s")
    return _openai_client


def chat(messages: List[Dict[str, str]]) -> str:
    """
    Send messages to the configured chat model.

    Args:
        messages: List of message dicts with 'role' and 'content' keys

    Returns:
        Content of the assistant's response
    """
    from openai import APITimeoutError

    settings = get_settings()
    client = _get_openai_client()
    model = settings.model if settings.llm_url else settings.model_name
    if not model:
        raise ValueError("No model configured. Set MODEL_NAME (or MODEL with LLM_URL) in .env")

    logger.debug(
        f"Sending chat request to {model} "
        f"(temperature={settings.temperature}, timeout={settings.llm_timeout}s)"
    )

    def _make_request():
        response = client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=settings.temperature,
        )
        content = response.choices[0].message.content or ""
        logger.debug(f"Received response ({len(content)} chars)")
        return content

    return retry_with_backoff(
        func=_make_request,
        max_retries=settings.llm_max_retries,
        base_delay=settings.llm_retry_delay,
        timeout_errors=(APITimeoutError, TimeoutError),
        operation_name=f"Chat call to {model}",
    )
