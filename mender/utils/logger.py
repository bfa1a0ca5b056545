"""Secure logging utilities for the agent.

Provides sanitized logging that removes sensitive information like tokens,
emails, and API keys before outputting to logs.
"""
import json
import logging
import re
from typing import Any

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger('mender-agent')


def sanitize_text(text: str) -> str:
    """Remove sensitive information from text.

    Args:
        text: Input text that may contain sensitive data

    Returns:
        Sanitized text with sensitive patterns replaced
    """
    if not text:
        return text

    # Credentials embedded in remote URLs
    text = re.sub(r'(https?://)[^/\s:@]+(:[^/\s@]*)?@', r'\1<credentials>@', text)

    # Email addresses
    text = re.sub(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}', '<email>', text)

    # API keys and tokens (common patterns)
    text = re.sub(r'sk-[a-zA-Z0-9_-]{20,}', '<api-key>', text)
    text = re.sub(r'gh[pousr]_[a-zA-Z0-9]{36,}', '<github-token>', text)
    text = re.sub(r'github_pat_[a-zA-Z0-9_]{20,}', '<github-token>', text)
    text = re.sub(r'[a-zA-Z0-9]{40,}', '<token>', text)

    return text


def safe_json(obj: Any, max_length: int = 1000) -> str:
    """Safely serialize object to JSON with sensitive data sanitized.

    Args:
        obj: Object to serialize
        max_length: Maximum length of output string

    Returns:
        Sanitized JSON string
    """
    try:
        json_str = json.dumps(obj, indent=2, ensure_ascii=False, default=str)
        sanitized = sanitize_text(json_str)

        if len(sanitized) > max_length:
            sanitized = sanitized[:max_length] + "... [truncated]"

        return sanitized
    except Exception:
        return "<unable to serialize>"


def configure_level(level: str) -> None:
    """Apply the configured level to the agent logger."""
    logger.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))


def log_info(message: str, **kwargs) -> None:
    """Log info message with optional sanitized context."""
    if kwargs:
        context = safe_json(kwargs)
        logger.info(f"{message} | Context: {context}")
    else:
        logger.info(message)


def log_warning(message: str, **kwargs) -> None:
    """Log warning message with optional sanitized context."""
    if kwargs:
        context = safe_json(kwargs)
        logger.warning(f"{message} | Context: {context}")
    else:
        logger.warning(message)


def log_error(message: str, **kwargs) -> None:
    """Log error message with optional sanitized context."""
    if kwargs:
        context = safe_json(kwargs)
        logger.error(f"{message} | Context: {context}")
    else:
        logger.error(message)


def log_debug(message: str, **kwargs) -> None:
    """Log debug message with optional sanitized context."""
    if kwargs:
        context = safe_json(kwargs)
        logger.debug(f"{message} | Context: {context}")
    else:
        logger.debug(message)


def log_api_response(operation: str, status_code: int) -> None:
    log_info(f"API {operation} completed", status_code=status_code)


def log_agent_progress(stage: str, **kwargs) -> None:
    """Log agent progress through the repair state machine.

    Args:
        stage: Current stage of processing (e.g. ``Scaffolded``, ``Attempt(2)``)
        **kwargs: Additional context
    """
    log_info(f"Agent progress: {stage}", **kwargs)
