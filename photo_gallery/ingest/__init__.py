"""Ingest pipeline for scanning photos, reading EXIF and publishing variants."""

from .exif_reader import album_key_for, extract_record, read_capture_time
from .pipeline import IngestionPipeline
from .scanner import SUPPORTED_EXTENSIONS, SourceFile, scan_photos
from .thumbnailer import resize_image

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "IngestionPipeline",
    "SourceFile",
    "album_key_for",
    "extract_record",
    "read_capture_time",
    "resize_image",
    "scan_photos",
]
