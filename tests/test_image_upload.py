from __future__ import annotations

import re
from pathlib import Path

from PIL import Image

from conftest import FakeUpload, make_image_bytes
from profilehub.schemas.upload import UploadErrorKind
from profilehub.services.images.errors import ImageOptimizationError, StorageError
from profilehub.services.images.optimizer import NoopOptimizer
from profilehub.services.images.storage import LocalDiskStorage, StorageRegistry
from profilehub.services.images.upload import (
    ImageUploader,
    UploadPolicy,
    build_storage_key,
    safe_base_filename,
)


class SizedCompressor:
    """Writes files of scripted sizes; records the qualities it was asked for."""

    def __init__(self, sizes: list[int]) -> None:
        self.sizes = list(sizes)
        self.qualities: list[int] = []

    def __call__(self, source, destination, quality, *, max_width=800) -> bool:
        self.qualities.append(quality)
        size = self.sizes.pop(0) if len(self.sizes) > 1 else self.sizes[0]
        Path(destination).parent.mkdir(parents=True, exist_ok=True)
        Path(destination).write_bytes(b"\xff" * size)
        return True


class BrokenStorage:
    name = "s3"

    def put(self, key, data, *, public, content_type="image/jpeg"):
        raise StorageError("s3 put failed for key: Could not connect to the endpoint URL")

    def size(self, key):
        raise AssertionError("size must not be called after a failed put")

    def url(self, key):
        raise AssertionError("url must not be called after a failed put")


def _uploader(tmp_path: Path, compressor, *, max_attempts: int = 5, storages=None) -> ImageUploader:
    storages = storages or StorageRegistry(
        {"local": LocalDiskStorage(tmp_path / "storage", "http://testserver/storage")},
        default="local",
    )
    return ImageUploader(
        storages=storages,
        optimizer=NoopOptimizer(),
        temp_dir=tmp_path / "temp",
        policy=UploadPolicy(max_attempts=max_attempts),
        compressor=compressor,
    )


def test_large_png_is_stored_under_budget(uploader, storage_root) -> None:
    data = make_image_bytes("PNG", (1500, 1200), compress_level=0)
    assert len(data) > 5_000_000

    result = uploader.upload(FakeUpload(data, "Holiday Photo.png"), directory="profile_pictures", public=True)

    assert result.success is True
    assert result.message == "Image successfully uploaded and compressed!"
    assert result.compressed_size_bytes <= 100_000
    assert result.original_size_kb == round(len(data) / 1024, 2)
    assert result.url == f"http://testserver/storage/{result.key}"
    assert re.fullmatch(r"profile_pictures/Holiday_Photo_[0-9a-f]+\.jpg", result.key)

    stored = storage_root / result.key
    assert stored.stat().st_size == result.compressed_size_bytes
    with Image.open(stored) as img:
        assert img.format == "JPEG"
        assert img.width <= 800


def test_no_recompression_once_within_budget(tmp_path) -> None:
    compressor = SizedCompressor([50_000])
    result = _uploader(tmp_path, compressor).upload(FakeUpload(b"src"), directory="x")

    assert result.success is True
    assert compressor.qualities == [60]


def test_recompresses_at_retry_quality_until_within_budget(tmp_path) -> None:
    compressor = SizedCompressor([300_000, 150_000, 90_000, 10])
    result = _uploader(tmp_path, compressor).upload(FakeUpload(b"src"), directory="x")

    assert result.success is True
    assert compressor.qualities == [60, 40, 40]
    assert result.compressed_size_bytes == 90_000


def test_budget_unreachable_after_max_attempts(tmp_path) -> None:
    compressor = SizedCompressor([250_000])
    result = _uploader(tmp_path, compressor, max_attempts=3).upload(FakeUpload(b"src"), directory="x")

    assert result.success is False
    assert result.error_kind == UploadErrorKind.BUDGET_UNREACHABLE
    assert compressor.qualities == [60, 40, 40, 40]
    assert "after 3 attempts" in result.message
    assert list((tmp_path / "temp").iterdir()) == []


def test_unsupported_format_fails_softly(uploader, tmp_path) -> None:
    result = uploader.upload(FakeUpload(make_image_bytes("BMP", (64, 64)), "scan.bmp"), directory="x")

    assert result.success is False
    assert result.error_kind == UploadErrorKind.UNSUPPORTED_FORMAT
    assert result.url is None


def test_undecodable_upload_fails_softly(uploader) -> None:
    result = uploader.upload(FakeUpload(b"not an image", "notes.txt"), directory="x")

    assert result.success is False
    assert result.error_kind == UploadErrorKind.DECODE_ERROR


def test_storage_failure_is_reported_with_backend_detail(tmp_path) -> None:
    storages = StorageRegistry({"s3": BrokenStorage()}, default="s3")
    result = _uploader(tmp_path, SizedCompressor([1_000]), storages=storages).upload(
        FakeUpload(b"src"), storage_backend="s3", directory="x"
    )

    assert result.success is False
    assert result.error_kind == UploadErrorKind.STORAGE_ERROR
    assert "Could not connect to the endpoint URL" in result.message
    assert list((tmp_path / "temp").iterdir()) == []


def test_unknown_backend_is_a_storage_failure(uploader) -> None:
    result = uploader.upload(FakeUpload(make_image_bytes("PNG", (10, 10))), storage_backend="ftp", directory="x")

    assert result.success is False
    assert result.error_kind == UploadErrorKind.STORAGE_ERROR


def test_temp_file_removed_after_success(tmp_path) -> None:
    result = _uploader(tmp_path, SizedCompressor([1_000])).upload(FakeUpload(b"src"), directory="x")

    assert result.success is True
    assert list((tmp_path / "temp").iterdir()) == []


def test_storage_keys_are_unique_per_upload(tmp_path) -> None:
    up = _uploader(tmp_path, SizedCompressor([1_000]))
    first = up.upload(FakeUpload(b"src", "a.png"), directory="x")
    second = up.upload(FakeUpload(b"src", "a.png"), directory="x")

    assert first.key != second.key


def test_storage_key_format() -> None:
    assert build_storage_key("/profile_pictures/", "../../etc/passwd", "abc") == "profile_pictures/passwd_abc.jpg"
    assert safe_base_filename("my photo (1).PNG") == "my_photo_1"
    assert safe_base_filename(None) == "image"
    assert safe_base_filename(".png") == "png"


class FailingOptimizer:
    def optimize(self, path: Path) -> None:
        raise ImageOptimizationError(f"could not optimize {Path(path).name}: broken huffman tables")


def test_optimizer_failure_fails_softly(tmp_path) -> None:
    up = _uploader(tmp_path, SizedCompressor([1_000]))
    up.optimizer = FailingOptimizer()

    result = up.upload(FakeUpload(b"src"), directory="x")

    assert result.success is False
    assert result.error_kind == UploadErrorKind.OPTIMIZER_ERROR
    assert "broken huffman tables" in result.message
    assert list((tmp_path / "temp").iterdir()) == []
    assert not (tmp_path / "storage").exists() or list((tmp_path / "storage").rglob("*.jpg")) == []
