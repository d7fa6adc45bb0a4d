from __future__ import annotations

import io
import sys
from pathlib import Path

import fakeredis
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from main import create_app
from services.deploy_service import DeployService
from utils.settings import AdminSettings


def make_image_bytes(width: int, height: int, fmt: str = "JPEG", mode: str = "RGB") -> bytes:
    color = {"RGB": (200, 120, 40), "RGBA": (200, 120, 40, 128)}.get(mode, 0)
    img = Image.new(mode, (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def settings(tmp_path: Path) -> AdminSettings:
    return AdminSettings(
        content_dir=tmp_path / "src" / "content",
        images_dir=tmp_path / "public" / "images",
        public_dir=tmp_path / "admin",
        local_only=True,
        project_root=tmp_path,
    )


@pytest.fixture
def redis_server() -> fakeredis.FakeServer:
    return fakeredis.FakeServer()


@pytest.fixture
def redis_sync(redis_server: fakeredis.FakeServer) -> fakeredis.FakeRedis:
    """Synchronous view of the shared store, for seeding and inspecting the queue."""
    return fakeredis.FakeRedis(server=redis_server, decode_responses=True)


@pytest.fixture
def client(settings: AdminSettings, redis_server: fakeredis.FakeServer):
    app = create_app(
        settings,
        redis_client=fakeredis.FakeAsyncRedis(server=redis_server, decode_responses=True),
        deploy_service=DeployService([sys.executable, "-c", "print('published')"], settings.project_root),
    )
    with TestClient(app) as test_client:
        yield test_client
