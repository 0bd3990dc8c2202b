from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from photo_gallery.core.errors import ExtractionFailed
from photo_gallery.core.models import PhotoRecord

DATETIME_ORIGINAL_TAG = 36867  # EXIF DateTimeOriginal
DATETIME_TAG = 306  # EXIF DateTime fallback
EXIF_IFD_POINTER = 34665
EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"
SECONDS_PER_DAY = 24 * 60 * 60


def _parse_exif_datetime(value: object) -> Optional[datetime]:
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    text = str(value).strip().rstrip("\x00")
    if not text:
        return None
    try:
        return datetime.strptime(text, EXIF_DATETIME_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def read_capture_time(path: str | Path) -> datetime:
    """Return the embedded capture time of a photo, interpreted as UTC."""
    try:
        with Image.open(path) as img:
            exif = img.getexif()
            # DateTimeOriginal normally sits in the Exif sub-IFD.
            candidates = [exif.get_ifd(EXIF_IFD_POINTER).get(DATETIME_ORIGINAL_TAG)]
            candidates.append(exif.get(DATETIME_ORIGINAL_TAG))
            candidates.append(exif.get(DATETIME_TAG))
    except (
        OSError,
        UnidentifiedImageError,
        SyntaxError,
        ValueError,
        Image.DecompressionBombError,
    ) as exc:
        raise ExtractionFailed(f"Cannot read metadata from {path}: {exc}") from exc

    for value in candidates:
        if value:
            parsed = _parse_exif_datetime(value)
            if parsed is not None:
                return parsed
    raise ExtractionFailed(f"No usable capture time in {path}")


def album_key_for(capture_time: int) -> int:
    """Truncate a UTC timestamp to midnight of its calendar day."""
    return capture_time - capture_time % SECONDS_PER_DAY


def extract_record(path: str | Path, filename: str) -> PhotoRecord:
    captured = int(read_capture_time(path).timestamp())
    return PhotoRecord(
        filename=filename,
        capture_time=captured,
        album_key=album_key_for(captured),
    )
