from __future__ import annotations


class GalleryError(RuntimeError):
    """Base class for ingestion and gallery failures."""


class DiscoveryError(GalleryError):
    """Raised when the source directory cannot be read."""


class ExtractionFailed(GalleryError):
    """Raised when a source file has no usable capture time."""


class DuplicateRecord(GalleryError):
    """Raised when a record with the same filename is already stored."""

    def __init__(self, filename: str):
        super().__init__(f"Filename already exists: {filename}")
        self.filename = filename


class RecordNotFound(GalleryError):
    """Raised when no record matches a filename."""

    def __init__(self, filename: str):
        super().__init__(f"No photo found for filename {filename}")
        self.filename = filename


class BlobCheckFailed(GalleryError):
    """Raised when the blob store cannot answer an existence query."""


class BlobUploadFailed(GalleryError):
    """Raised when an object could not be written to the blob store."""


class PersistFailed(GalleryError):
    """Raised when the metadata store cannot be written back."""
