from __future__ import annotations

from typing import Iterable, Optional

from photo_gallery.core.models import PhotoRecord
from photo_gallery.index import PhotoStore

from .signing import CloudFrontUrlSigner


class DeliveryUrls:
    """Build viewer URLs for the thumbnail and medium variants of a photo."""

    def __init__(
        self,
        base_url: str,
        thumb_prefix: str,
        medium_prefix: str,
        signer: Optional[CloudFrontUrlSigner] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.thumb_prefix = thumb_prefix
        self.medium_prefix = medium_prefix
        self.signer = signer

    def _url(self, prefix: str, filename: str) -> str:
        url = f"{self.base_url}/{prefix}{filename}"
        if self.signer is not None:
            return self.signer.sign_url(url)
        return url

    def thumb_url(self, filename: str) -> str:
        return self._url(self.thumb_prefix, filename)

    def medium_url(self, filename: str) -> str:
        return self._url(self.medium_prefix, filename)


def list_albums(store: PhotoStore) -> list[int]:
    """Distinct album keys, most recent day first."""
    return sorted({record.album_key for record in store.get_all()}, reverse=True)


def list_photos(
    store: PhotoStore,
    album_keys: Iterable[int],
    urls: Optional[DeliveryUrls] = None,
) -> list[PhotoRecord]:
    """Photos in the given albums, newest capture first, with delivery URLs attached."""
    wanted = set(album_keys)
    matches = [record for record in store.get_all() if record.album_key in wanted]
    matches.sort(key=lambda record: record.capture_time, reverse=True)
    if urls is None:
        return [record.model_copy() for record in matches]
    return [
        record.model_copy(
            update={
                "thumb_url": urls.thumb_url(record.filename),
                "medium_url": urls.medium_url(record.filename),
            }
        )
        for record in matches
    ]
