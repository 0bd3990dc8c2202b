"""Blob store access for originals and derivatives."""

from photo_gallery.core.config import GallerySettings

from .listing import BlobStore, ListingBlobIndex
from .s3 import S3BlobStore


def build_blob_store(
    settings: GallerySettings, client=None, *, check_bucket: bool = False
) -> BlobStore:
    """Create the S3 store, wrapped in a listing index unless probing is configured.

    With check_bucket, the bucket is verified reachable first and
    BlobCheckFailed is raised if it is not.
    """
    store = S3BlobStore(settings.s3_bucket, settings.s3_region, client=client)
    if check_bucket:
        store.check_bucket()
    if settings.existence_strategy == "probe":
        return store
    return ListingBlobIndex(store)


__all__ = ["BlobStore", "ListingBlobIndex", "S3BlobStore", "build_blob_store"]
