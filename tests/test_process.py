"""Tests for file and directory processing."""

import re
from pathlib import Path

import pytest

from doctomd.config import DocConfig
from doctomd.errors import ProcessingError
from doctomd.images import image_filename
from doctomd.ocr import MistralService
from doctomd.process import images_dir_for, process_files


def _service(client):
    return MistralService(client=client)


def test_images_dir_for():
    assert images_dir_for(Path("out/report.md")) == Path("out/report-images")


def test_process_single_file_link_mode(tmp_path: Path, fake_client, png_bytes):
    src = tmp_path / "in" / "report.pdf"
    src.parent.mkdir()
    src.write_bytes(b"%PDF")
    out = tmp_path / "out" / "report.md"

    written = process_files(src, out, service=_service(fake_client), config=DocConfig(api_key="k"))

    assert written == [out]
    name = image_filename("img-0.jpeg")
    assert out.read_text(encoding="utf-8") == (
        f"# Title\n\n![img-0.jpeg](report-images/{name})\n\nClosing text."
    )
    assert (tmp_path / "out" / "report-images" / name).read_bytes() == png_bytes


def test_process_single_file_embed_mode(tmp_path: Path, fake_client):
    src = tmp_path / "scan.png"
    src.write_bytes(b"\x89PNG")
    out = tmp_path / "scan.md"
    process_files(src, out, service=_service(fake_client), mode="embed")
    assert "](data:image/png;base64," in out.read_text(encoding="utf-8")
    assert not (tmp_path / "scan-images").exists()


def test_process_directory(tmp_path: Path, fake_client):
    src = tmp_path / "in"
    (src / "sub").mkdir(parents=True)
    (src / "a.pdf").write_bytes(b"%PDF")
    (src / "notes.txt").write_text("skip me")
    (src / "sub" / "b.jpg").write_bytes(b"jpg")
    out = tmp_path / "out"

    written = process_files(src, out, service=_service(fake_client), mode="embed")
    assert written == [out / "a.md"]
    assert not (out / "notes.md").exists()
    assert not (out / "sub").exists()


def test_process_directory_recursive(tmp_path: Path, fake_client):
    src = tmp_path / "in"
    (src / "sub").mkdir(parents=True)
    (src / "a.pdf").write_bytes(b"%PDF")
    (src / "sub" / "b.jpg").write_bytes(b"jpg")
    out = tmp_path / "out"

    written = process_files(src, out, service=_service(fake_client), recursive=True)
    assert sorted(written) == sorted([out / "a.md", out / "sub" / "b.md"])
    assert (out / "sub" / "b-images").is_dir()


def test_missing_input(tmp_path: Path, fake_client):
    with pytest.raises(FileNotFoundError, match="Input path does not exist"):
        process_files(tmp_path / "nope.pdf", tmp_path / "out.md", service=_service(fake_client))


def test_malformed_response_reports_input(tmp_path: Path, fake_client):
    fake_client.ocr.response = {"pages": []}
    src = tmp_path / "doc.pdf"
    src.write_bytes(b"%PDF")
    with pytest.raises(ProcessingError, match=re.escape(f"Failed to process file {src}")):
        process_files(src, tmp_path / "doc.md", service=_service(fake_client))
    assert not (tmp_path / "doc.md").exists()
