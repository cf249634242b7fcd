"""Shared fixtures: a fake Mistral SDK client and small OCR payloads."""

import base64
from types import SimpleNamespace

import pytest

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class FakeFiles:
    def __init__(self):
        self.uploads = []
        self.deleted = []

    def upload(self, file, purpose):
        self.uploads.append((file, purpose))
        return SimpleNamespace(id="file-123")

    def get_signed_url(self, file_id):
        return SimpleNamespace(url=f"https://signed.example/{file_id}")

    def delete(self, file_id):
        self.deleted.append(file_id)


class FakeOcr:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def process(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class FakeChat:
    def __init__(self, reply="Bonjour"):
        self.reply = reply
        self.calls = []

    def complete(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(self.reply, Exception):
            raise self.reply
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeClient:
    def __init__(self, response=None, reply="Bonjour"):
        self.files = FakeFiles()
        self.ocr = FakeOcr(response)
        self.chat = FakeChat(reply)


@pytest.fixture
def png_b64():
    return base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
def ocr_payload(png_b64):
    return {
        "pages": [
            {"index": 0, "markdown": "# Title\n\n![img-0.jpeg](img-0.jpeg)",
             "images": [{"id": "img-0.jpeg", "image_base64": png_b64}]},
            {"index": 1, "markdown": "", "images": []},
            {"index": 2, "markdown": "Closing text.", "images": []},
        ]
    }


@pytest.fixture
def fake_client(ocr_payload):
    return FakeClient(response=ocr_payload)


@pytest.fixture
def png_bytes():
    return PNG_BYTES
