"""Top‑level package for the document → Markdown tool.

This module exposes the reconciliation API used to turn an OCR
response into one Markdown document, as well as a command line
interface entry point via the ``doc-to-md`` console script.  See
:mod:`doctomd.cli` for details on the supported subcommands.
"""

__version__ = "1.0.0"

from .errors import ImageDecodeError, MalformedResponseError  # noqa: E402
from .reconcile import reconcile  # noqa: E402

__all__ = [
    "reconcile", "MalformedResponseError", "ImageDecodeError",
    "images", "markdown", "ocr", "process", "translate", "tokens", "cli", "config", "errors",
]
