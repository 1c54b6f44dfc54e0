from __future__ import annotations

import stat

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from profilehub.config import Settings
from profilehub.services.images.errors import StorageError
from profilehub.services.images.storage import LocalDiskStorage, S3Storage, StorageRegistry, build_storage_registry


class FakeS3Client:
    def __init__(self, *, fail_with: Exception | None = None) -> None:
        self.objects: dict[str, dict] = {}
        self.fail_with = fail_with

    def put_object(self, **kwargs):
        if self.fail_with is not None:
            raise self.fail_with
        self.objects[kwargs["Key"]] = kwargs
        return {"ETag": '"etag"'}

    def head_object(self, *, Bucket, Key):
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {"ContentLength": len(self.objects[Key]["Body"])}


def test_local_put_size_url(tmp_path) -> None:
    storage = LocalDiskStorage(tmp_path, "http://cdn.local/storage/")
    storage.put("profile_pictures/a.jpg", b"12345", public=True)

    assert storage.size("profile_pictures/a.jpg") == 5
    assert storage.url("profile_pictures/a.jpg") == "http://cdn.local/storage/profile_pictures/a.jpg"
    assert (tmp_path / "profile_pictures" / "a.jpg").read_bytes() == b"12345"


def test_local_private_objects_are_owner_only(tmp_path) -> None:
    storage = LocalDiskStorage(tmp_path, "http://cdn.local/storage")
    storage.put("private/a.jpg", b"x", public=False)

    mode = stat.S_IMODE((tmp_path / "private" / "a.jpg").stat().st_mode)
    assert mode == 0o600


def test_local_rejects_keys_outside_root(tmp_path) -> None:
    storage = LocalDiskStorage(tmp_path / "root", "http://cdn.local/storage")
    with pytest.raises(StorageError):
        storage.put("../escape.jpg", b"x", public=True)


def test_local_size_of_missing_key_is_storage_error(tmp_path) -> None:
    storage = LocalDiskStorage(tmp_path, "http://cdn.local/storage")
    with pytest.raises(StorageError):
        storage.size("missing.jpg")


def test_s3_put_uses_visibility_acl() -> None:
    client = FakeS3Client()
    storage = S3Storage(bucket="avatars", client=client, region="eu-west-1")

    storage.put("profile_pictures/a.jpg", b"abc", public=True)
    storage.put("private/b.jpg", b"abcd", public=False)

    assert client.objects["profile_pictures/a.jpg"]["ACL"] == "public-read"
    assert client.objects["profile_pictures/a.jpg"]["ContentType"] == "image/jpeg"
    assert client.objects["private/b.jpg"]["ACL"] == "private"
    assert storage.size("private/b.jpg") == 4
    assert storage.url("profile_pictures/a.jpg") == "https://avatars.s3.eu-west-1.amazonaws.com/profile_pictures/a.jpg"


def test_s3_public_base_url_overrides_bucket_url() -> None:
    storage = S3Storage(bucket="avatars", client=FakeS3Client(), public_base_url="https://cdn.example.com/")
    assert storage.url("k.jpg") == "https://cdn.example.com/k.jpg"


def test_s3_errors_become_storage_errors() -> None:
    storage = S3Storage(
        bucket="avatars",
        client=FakeS3Client(fail_with=EndpointConnectionError(endpoint_url="https://s3.invalid")),
    )
    with pytest.raises(StorageError) as excinfo:
        storage.put("a.jpg", b"x", public=True)
    assert "Could not connect to the endpoint URL" in str(excinfo.value)

    with pytest.raises(StorageError):
        storage.size("missing.jpg")


def test_registry_resolves_default_and_named_backends(tmp_path) -> None:
    local = LocalDiskStorage(tmp_path, "http://x")
    registry = StorageRegistry({"local": local}, default="local")

    assert registry.get() is local
    assert registry.get("local") is local
    with pytest.raises(StorageError):
        registry.get("s3")
    with pytest.raises(ValueError):
        StorageRegistry({"local": local}, default="s3")


def test_build_registry_without_bucket_falls_back_to_local(tmp_path) -> None:
    settings = Settings(STORAGE_BACKEND="s3", LOCAL_STORAGE_ROOT=str(tmp_path), S3_BUCKET=None)
    registry = build_storage_registry(settings)

    assert registry.names() == ["local"]
    assert registry.default == "local"


def test_build_registry_with_bucket_registers_s3(tmp_path) -> None:
    settings = Settings(
        STORAGE_BACKEND="s3",
        LOCAL_STORAGE_ROOT=str(tmp_path),
        S3_BUCKET="avatars",
        S3_REGION="eu-west-1",
        S3_PUBLIC_BASE_URL="https://cdn.example.com",
    )
    registry = build_storage_registry(settings)

    assert registry.default == "s3"
    assert registry.get().url("a.jpg") == "https://cdn.example.com/a.jpg"
