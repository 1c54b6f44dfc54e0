from profilehub.services.images.compressor import compress_image
from profilehub.services.images.errors import (
    BudgetUnreachable,
    ImageDecodeError,
    ImageOptimizationError,
    ImageUploadError,
    StorageError,
    UnsupportedImageFormat,
)
from profilehub.services.images.optimizer import ImageOptimizer, NoopOptimizer, PillowJpegOptimizer
from profilehub.services.images.storage import ImageStorage, LocalDiskStorage, S3Storage, StorageRegistry
from profilehub.services.images.upload import ImageUploader, UploadPolicy, build_image_uploader

__all__ = [
    "BudgetUnreachable",
    "ImageDecodeError",
    "ImageOptimizationError",
    "ImageOptimizer",
    "ImageStorage",
    "ImageUploadError",
    "ImageUploader",
    "LocalDiskStorage",
    "NoopOptimizer",
    "PillowJpegOptimizer",
    "S3Storage",
    "StorageError",
    "StorageRegistry",
    "UnsupportedImageFormat",
    "UploadPolicy",
    "build_image_uploader",
    "compress_image",
]
