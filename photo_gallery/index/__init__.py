"""Metadata stores holding one record per ingested photo."""

from __future__ import annotations

from typing import Protocol

from photo_gallery.core.config import GallerySettings
from photo_gallery.core.models import PhotoRecord

from .json_store import JsonFilePhotoStore
from .schema import Base, PhotoRow, create_engine_from_url, init_db, session_factory
from .sql_store import SqlPhotoStore


class PhotoStore(Protocol):
    def load(self) -> None: ...

    def refresh(self) -> bool: ...

    def persist(self) -> None: ...

    def erase(self) -> None: ...

    def get(self, filename: str) -> PhotoRecord: ...

    def add(self, record: PhotoRecord) -> None: ...

    def remove(self, record: PhotoRecord) -> None: ...

    def get_all(self) -> list[PhotoRecord]: ...


def build_store(settings: GallerySettings) -> PhotoStore:
    """Pick the SQL store when DATABASE_URL is configured, else the JSON file."""
    if settings.database_url:
        return SqlPhotoStore(settings.database_url)
    return JsonFilePhotoStore(settings.store_path)


__all__ = [
    "Base",
    "JsonFilePhotoStore",
    "PhotoRow",
    "PhotoStore",
    "SqlPhotoStore",
    "build_store",
    "create_engine_from_url",
    "init_db",
    "session_factory",
]
