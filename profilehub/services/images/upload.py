"""Compress, optimize and store uploaded images under a byte budget.

The pipeline mirrors what the profile page needs from an avatar upload:

1. re-encode the upload as a JPEG (width capped) at the initial quality,
2. run the optimizer pass,
3. while the result is over budget, recompress in place at the retry quality
   and optimize again, giving up after ``max_attempts`` rounds,
4. store the bytes under ``{directory}/{base}_{suffix}.jpg``.

``ImageUploader.upload`` never raises; every failure is reported through the
returned ``UploadResult``.
"""

from __future__ import annotations

import logging
import re
import secrets
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Protocol

from PIL import UnidentifiedImageError

from profilehub.config import Settings
from profilehub.schemas.upload import UploadErrorKind, UploadResult
from profilehub.services.images.compressor import compress_image
from profilehub.services.images.errors import (
    BudgetUnreachable,
    ImageDecodeError,
    ImageUploadError,
    UnsupportedImageFormat,
)
from profilehub.services.images.optimizer import ImageOptimizer, PillowJpegOptimizer
from profilehub.services.images.storage import StorageRegistry, build_storage_registry

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_-]+")

SUCCESS_MESSAGE = "Image successfully uploaded and compressed!"


class UploadedImage(Protocol):
    """What the pipeline needs from an upload; ``starlette.datastructures.UploadFile`` fits."""

    filename: str | None
    file: BinaryIO


@dataclass(frozen=True)
class UploadPolicy:
    max_bytes: int = 100_000
    initial_quality: int = 60
    retry_quality: int = 40
    max_attempts: int = 5
    max_width: int = 800

    @classmethod
    def from_settings(cls, settings: Settings) -> "UploadPolicy":
        return cls(
            max_bytes=settings.upload_max_bytes,
            initial_quality=settings.upload_initial_quality,
            retry_quality=settings.upload_retry_quality,
            max_attempts=settings.upload_max_attempts,
            max_width=settings.upload_max_width,
        )


def to_kb(size_bytes: int) -> float:
    return round(size_bytes / 1024, 2)


def safe_base_filename(filename: str | None) -> str:
    stem = Path(filename or "").stem
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", stem).strip("_")
    return cleaned[:100] or "image"


def unique_suffix() -> str:
    # Nanosecond timestamp first so keys sort by upload time.
    return f"{time.time_ns():x}{secrets.token_hex(4)}"


def build_storage_key(directory: str, base_filename: str | None, suffix: str) -> str:
    directory = directory.strip("/")
    name = f"{safe_base_filename(base_filename)}_{suffix}.jpg"
    return f"{directory}/{name}" if directory else name


def _stream_size(stream: BinaryIO) -> int:
    position = stream.tell()
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(position)
    return size


class ImageUploader:
    def __init__(
        self,
        *,
        storages: StorageRegistry,
        optimizer: ImageOptimizer,
        temp_dir: str | Path,
        policy: UploadPolicy | None = None,
        compressor: Callable[..., bool] = compress_image,
    ) -> None:
        self.storages = storages
        self.optimizer = optimizer
        self.temp_dir = Path(temp_dir)
        self.policy = policy or UploadPolicy()
        self._compress = compressor

    def upload(
        self,
        upload: UploadedImage,
        *,
        storage_backend: str | None = None,
        directory: str,
        base_filename: str | None = None,
        public: bool = True,
    ) -> UploadResult:
        temp_path = self.temp_dir / f"{uuid.uuid4().hex}.jpg"
        original_size: int | None = None
        try:
            storage = self.storages.get(storage_backend)
            upload.file.seek(0)
            original_size = _stream_size(upload.file)

            self._compress_within_budget(upload.file, temp_path)

            key = build_storage_key(directory, base_filename or upload.filename, unique_suffix())
            storage.put(key, temp_path.read_bytes(), public=public)
            stored_size = storage.size(key)
            url = storage.url(key)
        except ImageUploadError as exc:
            logger.warning(
                "image_upload.failed kind=%s filename=%s error=%s",
                exc.kind.value,
                upload.filename,
                exc,
            )
            return self._failure(exc.kind, str(exc), original_size)
        except Exception as exc:
            logger.exception("image_upload.unexpected filename=%s", upload.filename)
            return self._failure(UploadErrorKind.UNEXPECTED, str(exc), original_size)
        finally:
            temp_path.unlink(missing_ok=True)

        logger.info(
            "image_upload.stored backend=%s key=%s original_bytes=%s stored_bytes=%s",
            storage.name,
            key,
            original_size,
            stored_size,
        )
        return UploadResult(
            success=True,
            message=SUCCESS_MESSAGE,
            original_size_kb=to_kb(original_size),
            compressed_size_kb=to_kb(stored_size),
            compressed_size_bytes=stored_size,
            url=url,
            key=key,
            backend=storage.name,
        )

    def _compress_within_budget(self, source: BinaryIO, temp_path: Path) -> None:
        policy = self.policy
        try:
            written = self._compress(source, temp_path, policy.initial_quality, max_width=policy.max_width)
        except (UnidentifiedImageError, OSError) as exc:
            raise ImageDecodeError(f"could not decode image: {exc}") from exc
        if not written:
            raise UnsupportedImageFormat("unsupported image format; use JPEG, PNG or GIF")
        self.optimizer.optimize(temp_path)

        attempts = 0
        size = temp_path.stat().st_size
        while size > policy.max_bytes:
            if attempts >= policy.max_attempts:
                raise BudgetUnreachable(size_bytes=size, budget_bytes=policy.max_bytes, attempts=attempts)
            attempts += 1
            self._compress(temp_path, temp_path, policy.retry_quality, max_width=policy.max_width)
            self.optimizer.optimize(temp_path)
            size = temp_path.stat().st_size
            logger.debug("image_upload.recompressed attempt=%s bytes=%s", attempts, size)

    @staticmethod
    def _failure(kind: UploadErrorKind, detail: str, original_size: int | None) -> UploadResult:
        return UploadResult(
            success=False,
            message=f"Image upload failed: {detail}",
            original_size_kb=to_kb(original_size) if original_size is not None else None,
            error=detail,
            error_kind=kind,
        )


def build_image_uploader(settings: Settings) -> ImageUploader:
    return ImageUploader(
        storages=build_storage_registry(settings),
        optimizer=PillowJpegOptimizer(),
        temp_dir=settings.upload_temp_dir,
        policy=UploadPolicy.from_settings(settings),
    )
