import fnmatch
from pathlib import Path

import fitz
import numpy as np
import pytest
from PIL import Image

from gridslicer.config import settings
from gridslicer.services.image_loader import load_source
from gridslicer.services.job_service import JobService
from gridslicer.services.session_service import SessionService


class FakeRedis:
    """In-memory stand-in for the subset of redis.Redis the services use."""

    def __init__(self):
        self.store: dict[str, bytes] = {}
        self.ttls: dict[str, int] = {}

    @staticmethod
    def _key(key) -> str:
        return key.decode("utf-8") if isinstance(key, bytes) else key

    @staticmethod
    def _encode(value) -> bytes:
        if isinstance(value, bytes):
            return value
        return str(value).encode("utf-8")

    def ping(self) -> bool:
        return True

    def get(self, key: str):
        return self.store.get(self._key(key))

    def set(self, key: str, value, nx: bool = False, ex: int | None = None):
        key = self._key(key)
        if nx and key in self.store:
            return None
        self.store[key] = self._encode(value)
        if ex is not None:
            self.ttls[key] = ex
        return True

    def setex(self, key: str, ttl: int, value) -> bool:
        key = self._key(key)
        self.store[key] = self._encode(value)
        self.ttls[key] = ttl
        return True

    def delete(self, *keys: str) -> int:
        deleted = 0
        for key in map(self._key, keys):
            if self.store.pop(key, None) is not None:
                deleted += 1
            self.ttls.pop(key, None)
        return deleted

    def scan_iter(self, pattern: str = "*"):
        for key in list(self.store):
            if fnmatch.fnmatchcase(key, pattern):
                yield key.encode("utf-8")


class FakeQueue:
    """Records enqueued calls instead of sending them to RQ."""

    def __init__(self):
        self.calls: list[tuple] = []

    def enqueue(self, func, *args, **kwargs):
        self.calls.append((func, args, kwargs))


def make_grid_image(width: int = 400, height: int = 300, columns: tuple = (), rows: tuple = ()) -> Image.Image:
    """White RGB image with 1-pixel black lines at the given columns and rows."""
    pixels = np.full((height, width, 3), 255, dtype=np.uint8)
    for x in columns:
        pixels[:, x] = 0
    for y in rows:
        pixels[y, :] = 0
    return Image.fromarray(pixels)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def job_service(fake_redis):
    return JobService(redis_client=fake_redis)


@pytest.fixture
def session_service(fake_redis):
    return SessionService(redis_client=fake_redis)


@pytest.fixture
def fake_queue():
    return FakeQueue()


@pytest.fixture
def data_dirs(tmp_path, monkeypatch):
    """Point upload and output directories at a temporary location."""
    uploads = tmp_path / "uploads"
    output = tmp_path / "output"
    uploads.mkdir()
    output.mkdir()
    monkeypatch.setattr(settings, "uploads_dir", uploads)
    monkeypatch.setattr(settings, "output_dir", output)
    return uploads, output


@pytest.fixture
def png_path(tmp_path) -> Path:
    """400x300 PNG with vertical lines at x=100 and x=300."""
    path = tmp_path / "sheet.png"
    make_grid_image(columns=(100, 300)).save(path)
    return path


@pytest.fixture
def pdf_path(tmp_path) -> Path:
    """Three-page PDF, each page 200x100 points."""
    path = tmp_path / "document.pdf"
    doc = fitz.open()
    for page_number in range(3):
        page = doc.new_page(width=200, height=100)
        page.insert_text((20, 50), f"Page {page_number + 1}")
    doc.save(path)
    doc.close()
    return path


@pytest.fixture
def image_session(session_service, png_path, data_dirs):
    """Stored session for the PNG fixture."""
    return session_service.create_session(load_source(png_path), image_name="sheet")


@pytest.fixture
def pdf_session(session_service, pdf_path, data_dirs):
    """Stored session for the PDF fixture."""
    return session_service.create_session(load_source(pdf_path), image_name="document")
