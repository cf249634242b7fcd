"""Hosted OCR and translation API client.

This module wraps the ``mistralai`` SDK to submit a document to the
Mistral OCR endpoint and to translate Markdown through the chat
endpoint.  The upstream API is called exactly once per document; any
failure is re-raised as :class:`doctomd.errors.ApiError` with the
original exception chained.

It also defines the :class:`Page` and :class:`OcrResponse` dataclasses
which normalise the different shapes an OCR result can take (plain
``dict`` as decoded from JSON, SDK model objects, or already normalised
instances) before reconciliation.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from mistralai import Mistral

from .errors import ApiError, ConfigError, MalformedResponseError, UnsupportedFileError

logger = logging.getLogger(__name__)

SUPPORTED_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp")
SUPPORTED_DOCUMENT_EXTENSIONS = (".pdf",)
SUPPORTED_EXTENSIONS = SUPPORTED_IMAGE_EXTENSIONS + SUPPORTED_DOCUMENT_EXTENSIONS

DEFAULT_OCR_MODEL = "mistral-ocr-latest"
DEFAULT_CHAT_MODEL = "mistral-large-latest"

TRANSLATION_PROMPT = (
    "You are a professional translator. Translate the Markdown document "
    "provided by the user into {language}. Preserve the Markdown structure "
    "exactly: headings, lists, tables, links, image references and code "
    "blocks must stay in place, and code, URLs and image paths must not be "
    "translated. Reply with the translated Markdown only."
)


def _extract_attr(entry: object, name: str, default: Optional[object] = None) -> Optional[object]:
    if isinstance(entry, Mapping):
        return entry.get(name, default)
    return getattr(entry, name, default)


def _missing(entry: object, name: str) -> bool:
    if isinstance(entry, Mapping):
        return name not in entry
    return not hasattr(entry, name)


def _image_map(raw_images: object) -> Dict[str, str]:
    """Normalise the images of one page to an ``id -> base64`` mapping.

    Accepts either a mapping or a list of ``{id, image_base64}`` entries
    (``imageBase64`` is accepted too).  Entries without a payload are
    dropped; this is what the API returns when images were not requested.
    """
    if not raw_images:
        return {}
    if isinstance(raw_images, Mapping):
        return {str(k): v for k, v in raw_images.items() if v}
    images: Dict[str, str] = {}
    for entry in raw_images:  # type: ignore[union-attr]
        image_id = _extract_attr(entry, "id")
        payload = _extract_attr(entry, "image_base64") or _extract_attr(entry, "imageBase64")
        if image_id is None or not payload:
            logger.debug("Ignoring image entry without id or payload: %r", image_id)
            continue
        images[str(image_id)] = str(payload)
    return images


@dataclass(frozen=True)
class Page:
    """One page of an OCR result.

    ``images`` maps the OCR-assigned image id to its base64 payload (which
    may or may not carry a ``data:`` URI prefix).
    """

    markdown: str = ""
    images: Dict[str, str] = field(default_factory=dict)
    index: Optional[int] = None

    @classmethod
    def from_raw(cls, raw: object) -> "Page":
        if isinstance(raw, Page):
            return raw
        if not isinstance(raw, Mapping) and not hasattr(raw, "markdown"):
            raise MalformedResponseError(
                f"Malformed OCR response: page entry must be a mapping, got {type(raw).__name__}"
            )
        index = _extract_attr(raw, "index")
        return cls(
            markdown=str(_extract_attr(raw, "markdown", "") or ""),
            images=_image_map(_extract_attr(raw, "images")),
            index=int(index) if index is not None else None,
        )


@dataclass(frozen=True)
class OcrResponse:
    pages: List[Page]
    model: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: object) -> "OcrResponse":
        """Build an :class:`OcrResponse` from a dict or an SDK response.

        Raises
        ------
        MalformedResponseError
            If the response has no ``pages`` entry, if it is not a
            sequence or if it is empty.
        """
        if isinstance(raw, OcrResponse):
            if not raw.pages:
                raise MalformedResponseError("Malformed OCR response: page list is empty")
            return raw
        if raw is None or _missing(raw, "pages"):
            raise MalformedResponseError("Malformed OCR response: missing 'pages'")
        pages = _extract_attr(raw, "pages")
        if isinstance(pages, (str, bytes)) or not isinstance(pages, Sequence):
            raise MalformedResponseError(
                f"Malformed OCR response: 'pages' must be a list, got {type(pages).__name__}"
            )
        if not pages:
            raise MalformedResponseError("Malformed OCR response: page list is empty")
        model = _extract_attr(raw, "model")
        return cls(pages=[Page.from_raw(p) for p in pages], model=str(model) if model else None)


def _flatten_content(content: Any) -> str:
    """Return chat message content as text.

    The SDK returns either a string or a list of content chunks.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    parts: List[str] = []
    for chunk in content:
        text = _extract_attr(chunk, "text")
        if text:
            parts.append(str(text))
    return "".join(parts)


class MistralService:
    """Thin wrapper around the Mistral SDK used by the CLI commands."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        client: Optional[Any] = None,
        ocr_model: str = DEFAULT_OCR_MODEL,
        chat_model: str = DEFAULT_CHAT_MODEL,
    ) -> None:
        self.ocr_model = ocr_model
        self.chat_model = chat_model
        if client is not None:
            self.client = client
            return
        api_key = api_key or os.environ.get("MISTRAL_API_KEY")
        if not api_key:
            raise ConfigError("MISTRAL_API_KEY is not set in environment variables")
        self.client = Mistral(api_key=api_key)

    @staticmethod
    def is_file_supported(path: Union[str, Path]) -> bool:
        return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS

    def upload_file(self, path: Union[str, Path]) -> Any:
        path = Path(path)
        try:
            return self.client.files.upload(
                file={"file_name": path.name, "content": path.read_bytes()},
                purpose="ocr",
            )
        except Exception as exc:
            raise ApiError(f"Failed to upload file: {exc}") from exc

    def delete_file(self, file_id: str) -> None:
        """Remove an uploaded document; failures are only logged."""
        try:
            self.client.files.delete(file_id=file_id)
        except Exception as exc:
            logger.warning("Could not delete uploaded file %s: %s", file_id, exc)

    def process_file(self, path: Union[str, Path]) -> OcrResponse:
        """Run OCR on ``path`` and return the normalised response.

        The file is uploaded, a signed URL is requested and the OCR
        endpoint is invoked once with ``include_image_base64`` enabled so
        that embedded images can be reconciled into the Markdown.  The
        uploaded file is deleted afterwards, whether OCR succeeded or not.
        """
        path = Path(path)
        if not self.is_file_supported(path):
            raise UnsupportedFileError(f"Unsupported file type: {path.suffix}")

        file_id = _extract_attr(self.upload_file(path), "id")
        try:
            signed = self.client.files.get_signed_url(file_id=file_id)
            url = _extract_attr(signed, "url")
            if path.suffix.lower() in SUPPORTED_IMAGE_EXTENSIONS:
                document = {"type": "image_url", "image_url": url}
            else:
                document = {"type": "document_url", "document_url": url}
            logger.debug("Submitting %s to %s", path, self.ocr_model)
            raw = self.client.ocr.process(
                model=self.ocr_model,
                document=document,
                include_image_base64=True,
            )
        except Exception as exc:
            raise ApiError(f"Failed to process file with Mistral OCR API: {exc}") from exc
        finally:
            self.delete_file(file_id)
        return OcrResponse.from_raw(raw)

    def translate_content(self, markdown: str, language: str) -> str:
        try:
            response = self.client.chat.complete(
                model=self.chat_model,
                messages=[
                    {"role": "system", "content": TRANSLATION_PROMPT.format(language=language)},
                    {"role": "user", "content": markdown},
                ],
            )
            choices = _extract_attr(response, "choices") or []
            if not choices:
                return ""
            message = _extract_attr(choices[0], "message")
            return _flatten_content(_extract_attr(message, "content"))
        except Exception as exc:
            raise ApiError(f"Failed to translate content: {exc}") from exc
