"""Command line interface for doctomd.

This module defines the ``doc-to-md`` console entry point with two
subcommands: ``process`` runs documents through the hosted OCR API and
writes Markdown, ``translate`` translates a Markdown file.  It uses
Python's built‑in ``argparse`` module to parse command line options.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List

from . import __version__
from .config import DocConfig, load_config
from .ocr import MistralService
from .process import process_files
from .translate import SUPPORTED_LANGUAGES, translate_file

logger = logging.getLogger(__name__)


def _setup_logger(verbose: bool, level: str = "INFO") -> None:
    level_no = logging.DEBUG if verbose else getattr(logging, level, logging.INFO)
    logging.basicConfig(level=level_no, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _service(config: DocConfig) -> MistralService:
    return MistralService(config.api_key, ocr_model=config.ocr_model, chat_model=config.chat_model)


def _ask(tokens: int, cost: float) -> bool:
    answer = input(f"Translation will send {tokens} tokens (estimated cost {cost:.4f}). Continue? [y/N] ")
    return answer.strip().lower() in {"y", "yes"}


def cmd_process(args: argparse.Namespace, config: DocConfig) -> int:
    if args.workers is not None:
        config.image_workers = args.workers
    written = process_files(
        args.input,
        args.output,
        service=_service(config),
        config=config,
        mode=args.image_mode,
        recursive=args.recursive,
    )
    print(f"PDF processing with Mistral OCR completed successfully! ({len(written)} file(s))")
    return 0


def cmd_translate(args: argparse.Namespace, config: DocConfig) -> int:
    done = translate_file(
        args.input,
        args.output,
        args.language,
        service=_service(config),
        confirm=None if args.yes else _ask,
        rate_per_thousand=config.translation_rate,
    )
    if done:
        print(f"Translation to {args.language} completed successfully!")
    else:
        print("Translation cancelled.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doc-to-md", description="Convert documents to Markdown using Mistral OCR"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-c", "--config", default=None, help="Path to YAML configuration file")
    common.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("process", parents=[common], help="Convert a document (or directory) to Markdown")
    p.add_argument("-i", "--input", required=True, help="Input document or directory")
    p.add_argument("-o", "--output", required=True, help="Output Markdown file or directory")
    p.add_argument("-r", "--recursive", action="store_true", help="Descend into sub-directories")
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--embed-images", dest="image_mode", action="store_const", const="embed",
                      help="Inline images as base64 data URIs")
    mode.add_argument("--link-images", dest="image_mode", action="store_const", const="link",
                      help="Write images next to the Markdown file and link them")
    p.add_argument("--workers", type=int, default=None, help="Threads used to write images of a page")
    p.set_defaults(func=cmd_process, image_mode=None, error_prefix="Error processing PDF:")

    t = sub.add_parser("translate", parents=[common], help="Translate a Markdown file")
    t.add_argument("-i", "--input", required=True, help="Input Markdown file")
    t.add_argument("-o", "--output", required=True, help="Output translated Markdown file")
    t.add_argument("-l", "--language", required=True,
                   help=f"Target language. Supported languages: {', '.join(SUPPORTED_LANGUAGES)}")
    t.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    t.set_defaults(func=cmd_translate, error_prefix="Error translating file:")
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(args.config)
        _setup_logger(args.verbose, config.log_level)
        return args.func(args, config)
    except Exception as exc:
        print(f"{args.error_prefix} {exc}", file=sys.stderr)
        logger.debug("Command failed", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
