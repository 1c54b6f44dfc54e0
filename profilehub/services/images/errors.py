from __future__ import annotations

from profilehub.schemas.upload import UploadErrorKind


class ImageUploadError(Exception):
    kind: UploadErrorKind = UploadErrorKind.UNEXPECTED


class UnsupportedImageFormat(ImageUploadError):
    kind = UploadErrorKind.UNSUPPORTED_FORMAT


class ImageDecodeError(ImageUploadError):
    kind = UploadErrorKind.DECODE_ERROR


class ImageOptimizationError(ImageUploadError):
    kind = UploadErrorKind.OPTIMIZER_ERROR


class StorageError(ImageUploadError):
    kind = UploadErrorKind.STORAGE_ERROR


class BudgetUnreachable(ImageUploadError):
    kind = UploadErrorKind.BUDGET_UNREACHABLE

    def __init__(self, *, size_bytes: int, budget_bytes: int, attempts: int) -> None:
        super().__init__(
            f"compressed image is still {size_bytes} bytes after {attempts} attempts "
            f"(budget {budget_bytes} bytes)"
        )
        self.size_bytes = size_bytes
        self.budget_bytes = budget_bytes
        self.attempts = attempts
