"""Turn a multi-page OCR response into one linked Markdown document.

:func:`reconcile` is the entry point used by the processing layer.  It
validates the response, resolves the image placeholders of every page
through a reference strategy, and joins the pages in order:

* :class:`EmbedStrategy` inlines each image as a ``data:`` URI;
* :class:`LinkStrategy` writes each image to an images directory and
  links to it with a path relative to the Markdown file.

Only a malformed response is fatal.  Images that cannot be written are
logged and their placeholders are left as they were.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from .images import materialize
from .markdown import aggregate, rewrite
from .ocr import OcrResponse, Page

logger = logging.getLogger(__name__)

MODES = ("embed", "link")


def to_data_uri(payload: str) -> str:
    """Return ``payload`` as a data URI, keeping an existing prefix."""
    payload = payload.strip()
    if payload.startswith("data:"):
        return payload
    return f"data:image/png;base64,{payload}"


class EmbedStrategy:
    """Resolve every image to an inline ``data:`` URI."""

    def references(self, images: Mapping[str, str], log: logging.Logger) -> Dict[str, str]:
        return {image_id: to_data_uri(payload) for image_id, payload in images.items()}


class LinkStrategy:
    """Write images to ``images_dir`` and resolve them to relative paths."""

    def __init__(
        self,
        images_dir: Union[str, Path],
        markdown_dir: Union[str, Path, None] = None,
        workers: int = 1,
    ) -> None:
        self.images_dir = Path(images_dir)
        self.markdown_dir = Path(markdown_dir) if markdown_dir is not None else None
        self.workers = workers

    def references(self, images: Mapping[str, str], log: logging.Logger) -> Dict[str, str]:
        return materialize(
            images,
            self.images_dir,
            markdown_dir=self.markdown_dir,
            workers=self.workers,
            log=log,
        )


def _strategy_for(mode: str, images_dir, markdown_dir, workers: int):
    if mode == "embed":
        return EmbedStrategy()
    if mode == "link":
        if images_dir is None:
            raise ValueError("link mode requires an images directory")
        return LinkStrategy(images_dir, markdown_dir=markdown_dir, workers=workers)
    raise ValueError(f"Unknown image mode: {mode!r} (expected one of {', '.join(MODES)})")


def reconcile_page(page: Page, strategy, log: Optional[logging.Logger] = None) -> str:
    log = log or logger
    if not page.images:
        return page.markdown
    return rewrite(page.markdown, strategy.references(page.images, log))


def reconcile(
    response: object,
    mode: str = "embed",
    images_dir: Union[str, Path, None] = None,
    *,
    markdown_dir: Union[str, Path, None] = None,
    workers: int = 1,
    log: Optional[logging.Logger] = None,
) -> str:
    """Reconcile an OCR response into a single Markdown string.

    Parameters
    ----------
    response:
        The OCR result: a dict, an SDK response object or an
        :class:`~doctomd.ocr.OcrResponse`.
    mode:
        ``"embed"`` or ``"link"``.
    images_dir:
        Directory receiving image files; required in link mode.
    markdown_dir:
        Directory of the Markdown file, used to compute relative links.
    workers:
        Threads used to write the images of a page in link mode.
    log:
        Logger for per-image warnings (defaults to this module's logger).

    Raises
    ------
    MalformedResponseError
        If the response does not carry a non-empty page list.  Nothing
        is written to disk in that case.
    """
    log = log or logger
    strategy = _strategy_for(mode, images_dir, markdown_dir, workers)
    parsed = OcrResponse.from_raw(response)

    rewritten: List[str] = []
    for number, page in enumerate(parsed.pages, start=1):
        text = reconcile_page(page, strategy, log)
        if not text.strip():
            log.debug("Dropping empty page %d", number)
        rewritten.append(text)
    document = aggregate(rewritten)
    log.info("Reconciled %d page(s) in %s mode", len(parsed.pages), mode)
    return document
