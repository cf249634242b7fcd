"""Tests for writing OCR images to disk."""

import base64
import hashlib
import logging
from pathlib import Path

import pytest

from doctomd.errors import ImageDecodeError
from doctomd.images import decode_image, image_filename, materialize, strip_data_uri


def test_image_filename_depends_on_id_only():
    digest = hashlib.sha256(b"img-0.jpeg").hexdigest()[:16]
    assert image_filename("img-0.jpeg") == f"image-{digest}.png"
    assert image_filename("img-0.jpeg") == image_filename("img-0.jpeg")
    assert image_filename("img-0.jpeg") != image_filename("img-1.jpeg")


def test_strip_data_uri():
    assert strip_data_uri("data:image/jpeg;base64,QUJD") == "QUJD"
    assert strip_data_uri("QUJD") == "QUJD"


def test_decode_image_accepts_prefixed_payload(png_bytes, png_b64):
    assert decode_image(png_b64) == png_bytes
    assert decode_image("data:image/png;base64," + png_b64) == png_bytes


def test_decode_image_rejects_garbage():
    with pytest.raises(ImageDecodeError) as info:
        decode_image("not base64 !!", "img-9")
    assert info.value.image_id == "img-9"


def test_materialize_writes_files(tmp_path: Path, png_bytes, png_b64):
    images_dir = tmp_path / "doc-images"
    result = materialize({"img-0.jpeg": png_b64}, images_dir)
    name = image_filename("img-0.jpeg")
    assert result == {"img-0.jpeg": f"doc-images/{name}"}
    assert (images_dir / name).read_bytes() == png_bytes
    assert result.failed == {}


def test_materialize_is_idempotent(tmp_path: Path, png_b64):
    images_dir = tmp_path / "imgs"
    first = materialize({"a": png_b64}, images_dir)
    second = materialize({"a": png_b64}, images_dir)
    assert first == second
    assert len(list(images_dir.iterdir())) == 1


def test_materialize_relative_to_markdown_dir(tmp_path: Path, png_b64):
    images_dir = tmp_path / "assets" / "doc-images"
    result = materialize({"a": png_b64}, images_dir, markdown_dir=tmp_path)
    assert result["a"] == f"assets/doc-images/{image_filename('a')}"


def test_materialize_skips_corrupt_image(tmp_path: Path, png_b64, caplog):
    images_dir = tmp_path / "imgs"
    with caplog.at_level(logging.WARNING):
        result = materialize({"good": png_b64, "bad": "%%%"}, images_dir)
    assert list(result) == ["good"]
    assert "bad" in result.failed
    assert "Skipping image bad" in caplog.text
    assert (images_dir / image_filename("good")).exists()


def test_materialize_uses_injected_logger(tmp_path: Path, caplog):
    log = logging.getLogger("test.injected")
    with caplog.at_level(logging.WARNING, logger="test.injected"):
        materialize({"bad": "%%%"}, tmp_path / "imgs", log=log)
    assert any(r.name == "test.injected" for r in caplog.records)


def test_materialize_with_workers(tmp_path: Path):
    images = {f"img-{i}": base64.b64encode(bytes([i]) * 4).decode() for i in range(8)}
    result = materialize(images, tmp_path / "imgs", workers=4)
    assert set(result) == set(images)
    for i in range(8):
        assert (tmp_path / "imgs" / image_filename(f"img-{i}")).read_bytes() == bytes([i]) * 4


def test_materialize_empty_mapping_creates_nothing(tmp_path: Path):
    assert materialize({}, tmp_path / "imgs") == {}
    assert not (tmp_path / "imgs").exists()
