"""Shared fixtures: isolated storage roots and generated images."""

import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from imagecache.core.config import SecuritySettings, Settings, StorageSettings
from imagecache.core.container import ApplicationContainer
from imagecache.main import create_app

TEST_SECRET = "secret"


def make_image(width: int, height: int, fmt: str = "PNG", mode: str = "RGB", color=(200, 80, 40)) -> bytes:
    """Render a solid-colour image with a gradient stripe so encoders have real work to do."""
    img = Image.new(mode, (width, height), color=color if mode != "P" else 1)
    if mode in ("RGB", "RGBA"):
        for x in range(0, width, max(1, width // 10)):
            for y in range(height):
                img.putpixel((x, y), (x % 256, y % 256, 128) + ((255,) if mode == "RGBA" else ()))
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def image_size(data: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(data)) as img:
        return img.size


@pytest.fixture
def settings(tmp_path):
    return Settings(
        environment="test",
        storage=StorageSettings(asset_dir=tmp_path / "uploads", cache_dir=tmp_path / "cache"),
        security=SecuritySettings(secret_key=TEST_SECRET, presigned_expiration=300),
    )


@pytest.fixture
def container(settings):
    container = ApplicationContainer.from_settings(settings)
    container.init_infrastructure()
    return container


@pytest.fixture
def asset_store(container):
    return container.asset_store


@pytest.fixture
def engine(container):
    return container.engine


@pytest.fixture
def derivations(container):
    return container.derivations


@pytest.fixture
def client(container):
    with TestClient(create_app(container)) as test_client:
        yield test_client
