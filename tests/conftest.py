from __future__ import annotations

import io
import os
import tempfile
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient


_TMP_ROOT = Path(tempfile.mkdtemp(prefix="profilehub-tests-"))


def pytest_configure() -> None:
    # Point the SQLAlchemy engine and storage at throwaway locations before profilehub is imported.
    os.environ["ENVIRONMENT"] = "test"
    os.environ["DB_URL"] = f"sqlite:///{_TMP_ROOT / 'test.db'}"
    os.environ["ORM_DB_URL"] = f"sqlite:///{_TMP_ROOT / 'test.db'}"
    os.environ["ORM_USE_MYSQL"] = "false"
    os.environ["STORAGE_BACKEND"] = "local"
    os.environ["LOCAL_STORAGE_ROOT"] = str(_TMP_ROOT / "storage")
    os.environ["LOCAL_STORAGE_BASE_URL"] = "http://testserver/storage"
    os.environ["UPLOAD_TEMP_DIR"] = str(_TMP_ROOT / "temp")
    os.environ["SESSION_SECRET_KEY"] = "test-session-secret"
    os.environ["JWT_SECRET"] = "test-jwt-secret"
    os.environ.pop("S3_BUCKET", None)


def make_image_bytes(fmt: str, size: tuple[int, int] = (1200, 900), *, mode: str = "RGB", **save_kwargs: Any) -> bytes:
    from PIL import Image

    width, height = size
    img = Image.linear_gradient("L").resize(size)
    if mode == "RGB":
        img = Image.merge("RGB", (img, img.transpose(Image.Transpose.FLIP_LEFT_RIGHT), img.rotate(90).resize(size)))
    elif mode == "RGBA":
        alpha = Image.new("L", size, 128)
        img = Image.merge("RGBA", (img, img, img, alpha))
    elif mode == "P":
        img = img.convert("RGB").convert("P", palette=Image.Palette.ADAPTIVE)
    buf = io.BytesIO()
    img.save(buf, fmt, **save_kwargs)
    return buf.getvalue()


class FakeUpload:
    """Stand-in for starlette's UploadFile."""

    def __init__(self, data: bytes, filename: str = "avatar.png") -> None:
        self.file = io.BytesIO(data)
        self.filename = filename


@pytest.fixture()
def storage_root(tmp_path: Path) -> Path:
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture()
def uploader(tmp_path: Path, storage_root: Path):
    from profilehub.services.images.optimizer import PillowJpegOptimizer
    from profilehub.services.images.storage import LocalDiskStorage, StorageRegistry
    from profilehub.services.images.upload import ImageUploader

    storages = StorageRegistry(
        {"local": LocalDiskStorage(storage_root, "http://testserver/storage")},
        default="local",
    )
    return ImageUploader(storages=storages, optimizer=PillowJpegOptimizer(), temp_dir=tmp_path / "temp")


@pytest.fixture()
def db_session():
    from profilehub.database import Base, SessionLocal, engine
    import profilehub.models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(uploader) -> Any:
    from profilehub.database import Base, engine
    from profilehub.main import create_app
    from profilehub.routers.dependencies import get_image_uploader

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    app = create_app()
    app.dependency_overrides[get_image_uploader] = lambda: uploader
    with TestClient(app) as c:
        yield c


def register_and_login(client, email: str, password: str = "SecretPass123", name: str | None = None) -> dict[str, str]:
    r = client.post("/auth/register", json={"email": email, "password": password, "name": name})
    assert r.status_code == 201
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}
