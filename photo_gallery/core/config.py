from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from photo_gallery.core.models import VariantSpec, default_variants

logger = logging.getLogger(__name__)

EXISTENCE_STRATEGIES = {"listing", "probe"}
DELIVERY_MODES = {"url", "cookie"}


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default


@dataclass
class GallerySettings:
    source_dir: Optional[Path]
    store_path: Path
    database_url: Optional[str]
    s3_bucket: str
    s3_region: Optional[str]
    image_prefix: str
    thumb_prefix: str
    medium_prefix: str
    max_workers: int = 4
    existence_strategy: str = "listing"
    cloudfront_base_url: Optional[str] = None
    cloudfront_key_id: Optional[str] = None
    cloudfront_private_key_file: Optional[Path] = None
    cloudfront_expiration_hours: int = 1
    delivery_mode: str = "url"

    @classmethod
    def from_env(cls) -> "GallerySettings":
        source = os.getenv("IMAGE_SOURCE_FOLDER_PATH")
        key_file = os.getenv("CLOUDFRONT_PRIVATE_KEY_FILE")
        strategy = os.getenv("BLOB_EXISTENCE_STRATEGY", "listing").lower()
        if strategy not in EXISTENCE_STRATEGIES:
            logger.warning("Unknown BLOB_EXISTENCE_STRATEGY %r, using listing", strategy)
            strategy = "listing"
        mode = os.getenv("CLOUDFRONT_DELIVERY_MODE", "url").lower()
        if mode not in DELIVERY_MODES:
            logger.warning("Unknown CLOUDFRONT_DELIVERY_MODE %r, using url", mode)
            mode = "url"
        return cls(
            source_dir=Path(source).expanduser() if source else None,
            store_path=Path(os.getenv("PHOTO_STORE_PATH", "photos.json")).expanduser(),
            database_url=os.getenv("DATABASE_URL") or None,
            s3_bucket=os.getenv("S3_BUCKET", ""),
            s3_region=os.getenv("S3_REGION") or None,
            image_prefix=os.getenv("S3_IMAGE_FOLDER_PATH", "images/"),
            thumb_prefix=os.getenv("S3_THUMB_FOLDER_PATH", "thumbs/"),
            medium_prefix=os.getenv("S3_MEDIUM_FOLDER_PATH", "medium/"),
            max_workers=max(1, _int_env("INGEST_MAX_WORKERS", 4)),
            existence_strategy=strategy,
            cloudfront_base_url=os.getenv("CLOUDFRONT_BASE_URL") or None,
            cloudfront_key_id=os.getenv("CLOUDFRONT_KEY_ID") or None,
            cloudfront_private_key_file=Path(key_file).expanduser() if key_file else None,
            cloudfront_expiration_hours=_int_env("CLOUDFRONT_EXPIRATION_HOURS", 1),
            delivery_mode=mode,
        )

    def variants(self) -> list[VariantSpec]:
        return default_variants(self.image_prefix, self.thumb_prefix, self.medium_prefix)

    @property
    def signing_enabled(self) -> bool:
        return bool(
            self.cloudfront_base_url
            and self.cloudfront_key_id
            and self.cloudfront_private_key_file
        )
