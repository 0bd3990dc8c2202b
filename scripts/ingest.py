#!/usr/bin/env python
"""
Detect, resize and upload the photos of a source folder.

Usage:
  python scripts/ingest.py /absolute/path/to/photos
  IMAGE_SOURCE_FOLDER_PATH=~/Pictures S3_BUCKET=my-gallery python scripts/ingest.py --erase-db
"""
from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path

from photo_gallery.core.config import EXISTENCE_STRATEGIES, GallerySettings
from photo_gallery.core.env import configure_logging, load_dotenv_if_present
from photo_gallery.core.errors import BlobCheckFailed, DiscoveryError, PersistFailed
from photo_gallery.index import build_store
from photo_gallery.ingest import IngestionPipeline
from photo_gallery.storage import build_blob_store

logger = logging.getLogger("ingest")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Sync a photo folder to the gallery bucket.")
    parser.add_argument(
        "directory",
        type=Path,
        nargs="?",
        help="Directory containing photos (recursed); defaults to IMAGE_SOURCE_FOLDER_PATH",
    )
    parser.add_argument(
        "--erase-db", action="store_true", help="Replace existing photo records before the run"
    )
    parser.add_argument("--workers", type=int, help="Files processed concurrently")
    parser.add_argument(
        "--existence",
        choices=sorted(EXISTENCE_STRATEGIES),
        help="Check the bucket per object (probe) or from one listing (listing)",
    )
    args = parser.parse_args(argv)
    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be at least 1")

    load_dotenv_if_present()
    configure_logging()
    settings = GallerySettings.from_env()
    if args.existence:
        settings.existence_strategy = args.existence
    if args.workers is not None:
        settings.max_workers = args.workers
    target = args.directory or settings.source_dir
    if target is None:
        parser.error("no directory given and IMAGE_SOURCE_FOLDER_PATH is not set")
    if not settings.s3_bucket:
        parser.error("S3_BUCKET is not set")

    try:
        blob_store = build_blob_store(settings, check_bucket=True)
    except BlobCheckFailed as exc:
        logger.error("%s", exc)
        return 1

    store = build_store(settings)
    store.load()
    pipeline = IngestionPipeline(
        store,
        blob_store,
        variants=settings.variants(),
        max_workers=settings.max_workers,
    )

    def _interrupt(signum, frame):
        logger.warning("Interrupted, finishing files in flight")
        pipeline.cancel()

    previous_handler = signal.signal(signal.SIGINT, _interrupt)
    try:
        report = pipeline.run(target, erase_existing=args.erase_db)
    except (DiscoveryError, PersistFailed) as exc:
        logger.error("%s", exc)
        return 1
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    print(
        f"Ingest complete: {report.processed} processed, {report.skipped} skipped, "
        f"{report.uploaded} uploads, {report.failed} files with errors from {target}"
    )
    for error in report.errors:
        variant = f" [{error.variant}]" if error.variant else ""
        print(f"  {error.filename}{variant}: {error.kind}: {error.message}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
