"""LLM provider factory.

Centralizes all LLM instantiation for both LangChain and direct SDK paths.

Entry points:
- ``get_langchain_llm()`` -- LangChain chat model (for the repair strategy)
- ``chat_completion()``   -- direct OpenAI SDK call (for the test scaffolder)

Both fail with ``ConfigurationError`` before any network traffic when
``OPENAI_API_KEY`` is not configured.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from mender.config import get_config
from mender.errors import ConfigurationError
from mender.utils.logger import log_debug, log_info


def _require_api_key() -> str:
    api_key = get_config().openai_api_key
    if not api_key:
        raise ConfigurationError("OPENAI_API_KEY is not set; model-backed steps cannot run")
    return api_key


# ── LangChain path ──────────────────────────────────────────────


def get_langchain_llm():
    """Return a LangChain ``ChatOpenAI`` built from the current configuration."""
    api_key = _require_api_key()
    config = get_config()

    from langchain_openai import ChatOpenAI

    log_info("Using OpenAI LLM", model=config.openai_model)
    return ChatOpenAI(
        model=config.openai_model,
        temperature=config.openai_temperature,
        max_tokens=config.llm_max_tokens,
        api_key=api_key,
    )


# ── Direct SDK path ─────────────────────────────────────────────


def chat_completion(
    messages: List[Dict[str, str]],
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> str:
    """Single chat completion call.

    Args:
        messages: List of {"role": ..., "content": ...} dicts, system first.
        temperature: Sampling temperature (defaults to OPENAI_TEMPERATURE).
        max_tokens: Max output tokens (defaults to LLM_MAX_TOKENS).

    Returns:
        The assistant message content as a string.
    """
    api_key = _require_api_key()
    config = get_config()

    from openai import OpenAI

    client = OpenAI(api_key=api_key)
    kwargs: Dict[str, Any] = {
        "model": config.openai_model,
        "messages": messages,
        "temperature": config.openai_temperature if temperature is None else temperature,
        "max_tokens": config.llm_max_tokens if max_tokens is None else max_tokens,
    }
    log_debug("Sending chat completion", model=config.openai_model, turns=len(messages))
    response = client.chat.completions.create(**kwargs)
    return (response.choices[0].message.content or "").strip()
