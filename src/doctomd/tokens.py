"""Token counting and cost estimation for translation requests."""

from __future__ import annotations

import logging

import tiktoken

from .errors import TokenCountError

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "cl100k_base"


def count_tokens(text: str, encoding_name: str = DEFAULT_ENCODING) -> int:
    """Return the number of tokens in ``text`` for the given encoding."""
    try:
        encoding = tiktoken.get_encoding(encoding_name)
        return len(encoding.encode(text))
    except Exception as exc:
        logger.error("Error counting tokens: %s", exc)
        raise TokenCountError(f"Failed to count tokens: {exc}") from exc


def estimate_cost(token_count: int, rate_per_thousand: float) -> float:
    return token_count / 1000 * rate_per_thousand
