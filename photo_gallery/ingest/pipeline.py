from __future__ import annotations

import logging
import mimetypes
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence

from photo_gallery.core.errors import (
    BlobCheckFailed,
    BlobUploadFailed,
    DuplicateRecord,
    ExtractionFailed,
    PersistFailed,
    RecordNotFound,
)
from photo_gallery.core.models import (
    IngestError,
    IngestReport,
    PhotoRecord,
    VariantSpec,
    default_variants,
)
from photo_gallery.index import PhotoStore
from photo_gallery.storage import BlobStore

from .exif_reader import extract_record
from .scanner import SourceFile, scan_photos
from .thumbnailer import resize_image

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4

Extractor = Callable[[Path, str], PhotoRecord]
Resizer = Callable[[bytes, int, int], bytes]


@dataclass
class FileOutcome:
    filename: str
    recorded: bool = False
    uploaded: int = 0
    errors: list[IngestError] = field(default_factory=list)

    def fail(self, kind: str, message: str, variant: Optional[str] = None) -> None:
        self.errors.append(
            IngestError(filename=self.filename, kind=kind, message=message, variant=variant)
        )


def _content_type(filename: str) -> str:
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "image/jpeg"


class IngestionPipeline:
    """Sync a folder of photos into a metadata store and a blob store.

    Each file is handled by one worker thread: look up or create its
    record, then make sure every variant exists in the blob store. At
    most max_workers files are in flight; the dispatcher blocks until a
    slot frees up. Failures stay local to the file (or variant) that hit
    them, so re-running the pipeline is how missing work gets retried.
    """

    def __init__(
        self,
        store: PhotoStore,
        blob_store: BlobStore,
        *,
        variants: Optional[Sequence[VariantSpec]] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        extractor: Extractor = extract_record,
        resizer: Resizer = resize_image,
        cancel_event: Optional[threading.Event] = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.store = store
        self.blob_store = blob_store
        self.variants = list(variants) if variants is not None else default_variants()
        self.max_workers = max_workers
        self.extractor = extractor
        self.resizer = resizer
        self.cancel_event = cancel_event or threading.Event()

    def cancel(self) -> None:
        """Stop dispatching new files; files already in flight finish."""
        self.cancel_event.set()

    def run(self, source_dir: str | Path, erase_existing: bool = False) -> IngestReport:
        logger.info("Ingest: scanning %s", source_dir)
        sources = list(scan_photos(source_dir))
        logger.info("Ingest: found %d candidate files", len(sources))

        if erase_existing:
            logger.warning("Ingest: erasing existing photo records before run")
            self.store.erase()

        report = IngestReport()
        slots = threading.BoundedSemaphore(self.max_workers)
        futures: list[Future[FileOutcome]] = []
        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="ingest"
        ) as executor:
            for index, source in enumerate(sources):
                if self.cancel_event.is_set():
                    remaining = len(sources) - index
                    logger.warning("Ingest: cancelled, %d files not dispatched", remaining)
                    report.cancelled = True
                    report.skipped += remaining
                    break
                slots.acquire()
                try:
                    futures.append(executor.submit(self._run_in_slot, slots, source))
                except BaseException:
                    slots.release()
                    raise

        for future in futures:
            outcome = future.result()
            if outcome.recorded:
                report.processed += 1
            else:
                report.skipped += 1
            report.uploaded += outcome.uploaded
            report.errors.extend(outcome.errors)
        if self.cancel_event.is_set():
            report.cancelled = True

        self.store.persist()
        logger.info(
            "Ingest: %d processed, %d skipped, %d uploads, %d errors",
            report.processed,
            report.skipped,
            report.uploaded,
            len(report.errors),
        )
        return report

    def _run_in_slot(self, slots: threading.BoundedSemaphore, source: SourceFile) -> FileOutcome:
        try:
            return self.process_file(source)
        except Exception as exc:
            logger.exception("Unexpected failure while processing %s", source.filename)
            outcome = FileOutcome(filename=source.filename)
            outcome.fail("unexpected", str(exc))
            return outcome
        finally:
            slots.release()

    def process_file(self, source: SourceFile) -> FileOutcome:
        outcome = FileOutcome(filename=source.filename)
        if self.cancel_event.is_set():
            logger.debug("Skipping %s: run cancelled", source.filename)
            return outcome

        record = self._ensure_record(source, outcome)
        if record is None:
            return outcome
        outcome.recorded = True

        content: Optional[bytes] = None
        for variant in self.variants:
            key = variant.key_for(source.filename)
            try:
                if self.blob_store.exists(key):
                    logger.debug("%s %s already present", variant.name, source.filename)
                    continue
            except BlobCheckFailed as exc:
                logger.warning("Cannot check %s %s: %s", variant.name, source.filename, exc)
                outcome.fail("check", str(exc), variant.name)
                continue

            if content is None:
                try:
                    content = source.path.read_bytes()
                except OSError as exc:
                    logger.warning("Cannot read %s: %s", source.path, exc)
                    outcome.fail("read", str(exc), variant.name)
                    return outcome

            if variant.resized:
                try:
                    body = self.resizer(content, 0, variant.height)
                except (OSError, ValueError) as exc:
                    logger.warning("Cannot resize %s to %s: %s", source.filename, variant.name, exc)
                    outcome.fail("resize", str(exc), variant.name)
                    continue
                content_type = "image/jpeg"
            else:
                body = content
                content_type = _content_type(source.filename)

            try:
                self.blob_store.put(key, body, content_type)
            except BlobUploadFailed as exc:
                logger.warning("Upload of %s %s failed: %s", variant.name, source.filename, exc)
                outcome.fail("upload", str(exc), variant.name)
                continue
            outcome.uploaded += 1
            logger.info("Uploaded %s %s", variant.name, source.filename)
        return outcome

    def _ensure_record(self, source: SourceFile, outcome: FileOutcome) -> Optional[PhotoRecord]:
        try:
            return self.store.get(source.filename)
        except RecordNotFound:
            pass

        try:
            record = self.extractor(source.path, source.filename)
        except ExtractionFailed as exc:
            logger.warning("Can't create photo from %s: %s", source.filename, exc)
            outcome.fail("extraction", str(exc))
            return None

        try:
            self.store.add(record)
        except DuplicateRecord:
            logger.debug("Record for %s created concurrently, reusing it", source.filename)
            return self.store.get(source.filename)
        except PersistFailed as exc:
            # The record is held in memory; the final persist retries the write.
            logger.warning("Incremental persist after %s failed: %s", source.filename, exc)
            outcome.fail("store", str(exc))
        return record
