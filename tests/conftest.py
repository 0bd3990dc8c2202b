from __future__ import annotations

import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import pytest
from PIL import Image

from photo_gallery.core.errors import BlobCheckFailed, BlobUploadFailed


class FakeBlobStore:
    """In-memory blob store that records calls and can be told to fail."""

    def __init__(self, keys: tuple[str, ...] = ()):
        self.objects: dict[str, bytes] = {key: b"" for key in keys}
        self.content_types: dict[str, str] = {}
        self.puts: list[str] = []
        self.exists_calls = 0
        self.list_calls = 0
        self.fail_uploads: dict[str, int] = {}
        self.fail_checks: set[str] = set()
        self._lock = threading.Lock()

    def exists(self, key: str) -> bool:
        with self._lock:
            self.exists_calls += 1
            if key in self.fail_checks:
                raise BlobCheckFailed(f"check refused for {key}")
            return key in self.objects

    def put(self, key: str, content: bytes, content_type: str = "image/jpeg") -> str:
        with self._lock:
            remaining = self.fail_uploads.get(key, 0)
            if remaining:
                self.fail_uploads[key] = remaining - 1
                raise BlobUploadFailed(f"upload refused for {key}")
            self.objects[key] = content
            self.content_types[key] = content_type
            self.puts.append(key)
        return f"memory://{key}"

    def list_all_keys(self) -> list[str]:
        with self._lock:
            self.list_calls += 1
            return list(self.objects)


def write_photo(
    path: Path,
    taken: Optional[datetime] = None,
    size: tuple[int, int] = (40, 30),
    color: str = "red",
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", size, color=color)
    if taken is None:
        img.save(path)
    else:
        exif = Image.Exif()
        exif[36867] = taken.strftime("%Y:%m:%d %H:%M:%S")
        exif[306] = taken.strftime("%Y:%m:%d %H:%M:%S")  # fallback DateTime
        img.save(path, exif=exif)
    return path


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def fake_blob_store_cls() -> type[FakeBlobStore]:
    return FakeBlobStore


@pytest.fixture
def make_photo() -> Callable[..., Path]:
    return write_photo
