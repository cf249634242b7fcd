"""Run OCR over a file or a directory and write Markdown results.

A single input file produces the Markdown file given as output.  A
directory input produces one ``<stem>.md`` per supported file inside
the output directory, descending into sub-directories only when
``recursive`` is set.  In link mode the images of ``doc.md`` are written
to ``doc-images/`` beside it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from tqdm import tqdm

from .config import DocConfig
from .errors import ProcessingError
from .ocr import MistralService
from .reconcile import reconcile

logger = logging.getLogger(__name__)

IMAGES_DIR_SUFFIX = "-images"


def images_dir_for(markdown_path: Path) -> Path:
    return markdown_path.with_name(f"{markdown_path.stem}{IMAGES_DIR_SUFFIX}")


def process_file(
    input_path: Path,
    output_path: Path,
    service: MistralService,
    *,
    mode: str = "link",
    workers: int = 1,
) -> Path:
    """OCR one document and write its reconciled Markdown."""
    try:
        logger.info("Processing file: %s", input_path)
        response = service.process_file(input_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        markdown = reconcile(
            response,
            mode,
            images_dir_for(output_path) if mode == "link" else None,
            markdown_dir=output_path.parent,
            workers=workers,
        )
        output_path.write_text(markdown, encoding="utf-8")
    except Exception as exc:
        raise ProcessingError(f"Failed to process file {input_path}: {exc}") from exc
    logger.info("File processed successfully: %s", output_path)
    return output_path


def _collect(input_dir: Path, output_dir: Path, service: MistralService, recursive: bool) -> List[Tuple[Path, Path]]:
    jobs: List[Tuple[Path, Path]] = []
    for entry in sorted(input_dir.iterdir()):
        if entry.is_file():
            if not service.is_file_supported(entry):
                logger.info("Skipping unsupported file for OCR: %s", entry)
                continue
            jobs.append((entry, output_dir / f"{entry.stem}.md"))
        elif entry.is_dir() and recursive:
            jobs.extend(_collect(entry, output_dir / entry.name, service, recursive))
    return jobs


def process_directory(
    input_dir: Path,
    output_dir: Path,
    service: MistralService,
    *,
    recursive: bool = False,
    mode: str = "link",
    workers: int = 1,
) -> List[Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    jobs = _collect(input_dir, output_dir, service, recursive)
    written: List[Path] = []
    for src, dst in tqdm(jobs, desc="OCR", unit="file", disable=not jobs):
        written.append(process_file(src, dst, service, mode=mode, workers=workers))
    return written


def process_files(
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    *,
    service: Optional[MistralService] = None,
    config: Optional[DocConfig] = None,
    mode: Optional[str] = None,
    recursive: bool = False,
) -> List[Path]:
    """Process ``input_path`` (file or directory) into Markdown.

    Returns the list of Markdown files written.
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    config = config or DocConfig()
    mode = mode or config.image_mode
    if not input_path.exists():
        raise FileNotFoundError(f"Input path does not exist: {input_path}")
    if service is None:
        service = MistralService(config.api_key, ocr_model=config.ocr_model, chat_model=config.chat_model)

    if input_path.is_file():
        return [process_file(input_path, output_path, service, mode=mode, workers=config.image_workers)]
    if input_path.is_dir():
        return process_directory(
            input_path, output_path, service, recursive=recursive, mode=mode, workers=config.image_workers
        )
    raise ProcessingError(f"Unsupported file type: {input_path}")
