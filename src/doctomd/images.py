"""Persist OCR images to disk.

Images embedded in an OCR page arrive as base64 payloads keyed by the
id the OCR service assigned them.  :func:`materialize` decodes each
payload and writes it under an images directory using a file name
derived from the id only (``image-<digest>.png``), so reprocessing the
same document always produces the same file names.

A payload that cannot be decoded or written is logged and skipped; the
remaining images of the page are still written.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

from .errors import ImageDecodeError

logger = logging.getLogger(__name__)

_DATA_URI_PREFIX = re.compile(r"^data:[^,]*?;base64,", re.IGNORECASE)
_DIGEST_LENGTH = 16


class MaterializeResult(dict):
    """Mapping of image id to relative path, plus the ids that failed."""

    def __init__(self) -> None:
        super().__init__()
        self.failed: Dict[str, str] = {}


def strip_data_uri(payload: str) -> str:
    """Remove a leading ``data:<mime>;base64,`` prefix, if any."""
    return _DATA_URI_PREFIX.sub("", payload.strip(), count=1)


def image_filename(image_id: str) -> str:
    digest = hashlib.sha256(image_id.encode("utf-8")).hexdigest()[:_DIGEST_LENGTH]
    return f"image-{digest}.png"


def decode_image(payload: str, image_id: Optional[str] = None) -> bytes:
    """Decode a base64 payload (with or without data URI prefix)."""
    try:
        return base64.b64decode("".join(strip_data_uri(payload).split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError(f"Invalid base64 payload for image {image_id!r}: {exc}", image_id) from exc


def _relative_dir(target_dir: Path, markdown_dir: Optional[Path]) -> str:
    if markdown_dir is None:
        return target_dir.name
    return Path(os.path.relpath(target_dir, markdown_dir)).as_posix()


def _write_one(image_id: str, payload: str, target_dir: Path) -> str:
    data = decode_image(payload, image_id)
    name = image_filename(image_id)
    try:
        (target_dir / name).write_bytes(data)
    except OSError as exc:
        raise ImageDecodeError(f"Could not write image {image_id!r}: {exc}", image_id) from exc
    return name


def materialize(
    images: Mapping[str, str],
    target_dir: Union[str, Path],
    *,
    markdown_dir: Union[str, Path, None] = None,
    workers: int = 1,
    log: Optional[logging.Logger] = None,
) -> MaterializeResult:
    """Write every image of a page to ``target_dir``.

    Parameters
    ----------
    images:
        Mapping of OCR image id to base64 payload.
    target_dir:
        Directory receiving the files.  Created if missing.
    markdown_dir:
        Directory of the Markdown file that will reference the images.
        Returned paths are relative to it; when omitted they are
        ``<target_dir name>/<file>``.
    workers:
        Number of threads used to write the images of this page.
    log:
        Logger receiving per-image failures (defaults to the module logger).

    Returns
    -------
    MaterializeResult
        Mapping of id to relative posix path for every image written.
        Ids that failed are listed in ``result.failed`` instead.
    """
    log = log or logger
    result = MaterializeResult()
    if not images:
        return result

    target_dir = Path(target_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    prefix = _relative_dir(target_dir, Path(markdown_dir) if markdown_dir is not None else None)

    def _attempt(item: Tuple[str, str]) -> Tuple[str, Optional[str], Optional[str]]:
        image_id, payload = item
        try:
            return image_id, _write_one(image_id, payload, target_dir), None
        except ImageDecodeError as exc:
            return image_id, None, str(exc)

    items = list(images.items())
    if workers > 1 and len(items) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(_attempt, items))
    else:
        outcomes = [_attempt(item) for item in items]

    for image_id, name, error in outcomes:
        if name is None:
            log.warning("Skipping image %s: %s", image_id, error)
            result.failed[image_id] = error or "unknown error"
        else:
            result[image_id] = f"{prefix}/{name}" if prefix not in ("", ".") else name
    log.debug("Materialized %d image(s) into %s", len(result), target_dir)
    return result
