from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from profilehub.config import Settings
from profilehub.services.images.errors import StorageError

logger = logging.getLogger(__name__)


class ImageStorage(Protocol):
    name: str

    def put(self, key: str, data: bytes, *, public: bool, content_type: str = "image/jpeg") -> None: ...

    def size(self, key: str) -> int: ...

    def url(self, key: str) -> str: ...


def resolve_storage_path(root: Path, key: str) -> Path:
    candidate = (root / key).resolve()
    if root != candidate and root not in candidate.parents:
        raise StorageError("Invalid storage key.")
    return candidate


class LocalDiskStorage:
    """Files under ``root``; public objects are world-readable, private ones owner-only."""

    name = "local"

    def __init__(self, root: str | Path, base_url: str) -> None:
        self.root = Path(root).expanduser().resolve()
        self.base_url = base_url.rstrip("/")

    def put(self, key: str, data: bytes, *, public: bool, content_type: str = "image/jpeg") -> None:
        path = resolve_storage_path(self.root, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            os.chmod(path, 0o644 if public else 0o600)
        except OSError as exc:
            raise StorageError(f"local storage write failed for {key}: {exc}") from exc

    def size(self, key: str) -> int:
        path = resolve_storage_path(self.root, key)
        try:
            return path.stat().st_size
        except OSError as exc:
            raise StorageError(f"local storage stat failed for {key}: {exc}") from exc

    def url(self, key: str) -> str:
        return f"{self.base_url}/{key.lstrip('/')}"

    def path(self, key: str) -> Path:
        return resolve_storage_path(self.root, key)


class S3Storage:
    """S3 (or S3-compatible) bucket. ``client`` is a boto3 S3 client."""

    name = "s3"

    def __init__(
        self,
        *,
        bucket: str,
        client: Any,
        region: str = "us-east-1",
        public_base_url: str | None = None,
    ) -> None:
        self.bucket = bucket
        self.client = client
        self.region = region
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def put(self, key: str, data: bytes, *, public: bool, content_type: str = "image/jpeg") -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="public-read" if public else "private",
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"s3 put failed for {key}: {exc}") from exc

    def size(self, key: str) -> int:
        try:
            head = self.client.head_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"s3 head failed for {key}: {exc}") from exc
        return int(head["ContentLength"])

    def url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"


class StorageRegistry:
    def __init__(self, backends: Mapping[str, ImageStorage], *, default: str) -> None:
        if default not in backends:
            raise ValueError(f"default storage backend {default!r} is not registered")
        self._backends = dict(backends)
        self.default = default

    def get(self, name: str | None = None) -> ImageStorage:
        backend_name = name or self.default
        try:
            return self._backends[backend_name]
        except KeyError as exc:
            raise StorageError(f"unknown storage backend {backend_name!r}") from exc

    def names(self) -> list[str]:
        return sorted(self._backends)


def build_storage_registry(settings: Settings) -> StorageRegistry:
    backends: dict[str, ImageStorage] = {
        "local": LocalDiskStorage(settings.local_storage_root, settings.local_storage_base_url),
    }
    if settings.s3_bucket:
        client = boto3.client(
            "s3",
            region_name=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
        )
        backends["s3"] = S3Storage(
            bucket=settings.s3_bucket,
            client=client,
            region=settings.s3_region,
            public_base_url=settings.s3_public_base_url,
        )
    elif settings.storage_backend == "s3":
        logger.warning("storage.s3_unconfigured falling_back=local")
    default = settings.storage_backend if settings.storage_backend in backends else "local"
    return StorageRegistry(backends, default=default)
