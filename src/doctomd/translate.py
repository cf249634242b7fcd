"""Translate a Markdown file through the hosted chat API."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from .errors import ProcessingError
from .ocr import MistralService
from .tokens import count_tokens, estimate_cost

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("french", "german", "spanish", "russian")

ConfirmCallback = Callable[[int, float], bool]


def translate_file(
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    language: str,
    *,
    service: MistralService,
    confirm: Optional[ConfirmCallback] = None,
    rate_per_thousand: float = 0.002,
) -> bool:
    """Translate ``input_path`` into ``language`` and write ``output_path``.

    The token count and estimated cost of the request are logged before
    the API is called.  If ``confirm`` is given it receives both values
    and may return ``False`` to abort, in which case nothing is written
    and ``False`` is returned.

    Raises
    ------
    FileNotFoundError
        If the input file does not exist.
    ValueError
        If the input is a directory or the language is not supported.
    ProcessingError
        If reading, translating or writing fails.
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    if not input_path.exists():
        raise FileNotFoundError(f"Input file does not exist: {input_path}")
    if not input_path.is_file():
        raise ValueError(f"Input must be a file, not a directory: {input_path}")
    if language.lower() not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"Unsupported language: {language}. Supported languages are: {', '.join(SUPPORTED_LANGUAGES)}"
        )

    try:
        markdown = input_path.read_text(encoding="utf-8")
        tokens = count_tokens(markdown)
        cost = estimate_cost(tokens, rate_per_thousand)
        logger.info("Input contains %d tokens (estimated cost %.4f)", tokens, cost)
        if confirm is not None and not confirm(tokens, cost):
            logger.info("Translation cancelled")
            return False

        logger.info("Translating markdown file to %s: %s", language, input_path)
        translated = service.translate_content(markdown, language)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(translated, encoding="utf-8")
    except Exception as exc:
        raise ProcessingError(f"Failed to translate file {input_path}: {exc}") from exc
    logger.info("Translation completed successfully: %s", output_path)
    return True
