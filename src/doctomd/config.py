"""Configuration loading and validation.

Settings may be stored in an optional YAML file.  The :class:`DocConfig`
dataclass captures the relevant fields with sensible defaults and
performs basic validation.  The API key is normally taken from the
``MISTRAL_API_KEY`` environment variable; a ``.env`` file in the
working directory is loaded first so the key can live there.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Union

import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .ocr import DEFAULT_CHAT_MODEL, DEFAULT_OCR_MODEL

API_KEY_ENV = "MISTRAL_API_KEY"
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class DocConfig:
    """Dataclass capturing the tool's configuration.

    The fields map one‑to‑one to keys in the YAML configuration.  Keys
    omitted from the file keep the defaults defined here.
    """

    api_key: Optional[str] = None
    ocr_model: str = DEFAULT_OCR_MODEL
    chat_model: str = DEFAULT_CHAT_MODEL
    image_mode: str = "link"  # link | embed
    image_workers: int = 1
    translation_rate: float = 0.002  # cost per 1000 tokens
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.image_mode not in {"link", "embed"}:
            raise ConfigError(f"Invalid image_mode: {self.image_mode}")
        if int(self.image_workers) < 1:
            raise ConfigError(f"image_workers must be at least 1, got {self.image_workers}")
        self.image_workers = int(self.image_workers)
        if float(self.translation_rate) < 0:
            raise ConfigError(f"translation_rate must not be negative, got {self.translation_rate}")
        self.translation_rate = float(self.translation_rate)
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Invalid log_level: {self.log_level}")


def load_config(path: Union[str, Path, None] = None) -> DocConfig:
    """Load configuration into a :class:`DocConfig`.

    Parameters
    ----------
    path:
        Optional path to a YAML configuration file.

    Returns
    -------
    DocConfig
        A populated configuration dataclass instance.
    """
    load_dotenv()
    data = {}
    if path is not None:
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {path}")
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file must contain a mapping: {path}")

    known = {f.name for f in fields(DocConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    if not data.get("api_key"):
        data["api_key"] = os.environ.get(API_KEY_ENV)
    return DocConfig(**data)
