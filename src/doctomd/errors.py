"""Exception hierarchy for the document → Markdown tool.

All errors raised deliberately by :mod:`doctomd` derive from
:class:`DocToMdError` so that the command line layer can report them
uniformly.  Lower level exceptions (I/O errors, SDK errors) are wrapped
with ``raise ... from exc`` so the original cause is never lost.
"""

from __future__ import annotations

from typing import Optional


class DocToMdError(Exception):
    """Base class for all errors raised by doctomd."""


class ConfigError(DocToMdError, ValueError):
    """Invalid or missing configuration (API key, mode, workers...)."""


class MalformedResponseError(DocToMdError):
    """The OCR response does not carry a non-empty page list."""


class ImageDecodeError(DocToMdError):
    """A single embedded image could not be decoded or written."""

    def __init__(self, message: str, image_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.image_id = image_id


class UnsupportedFileError(DocToMdError):
    pass


class ApiError(DocToMdError):
    """A call to the hosted OCR / chat API failed."""


class ProcessingError(DocToMdError):
    """Processing or translating one input file failed."""


class TokenCountError(DocToMdError):
    pass
