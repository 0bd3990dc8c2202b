from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from photo_gallery.core.errors import DuplicateRecord, PersistFailed, RecordNotFound
from photo_gallery.core.models import PhotoRecord

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(list[PhotoRecord])


class JsonFilePhotoStore:
    """Photo records kept in memory and persisted as a JSON array.

    Records are keyed by filename; a dict keeps insertion order, which is
    the order written back to disk. Every mutation holds the same lock.
    """

    def __init__(self, path: str | Path, *, persist_on_add: bool = False):
        self.path = Path(path)
        self.persist_on_add = persist_on_add
        self._records: dict[str, PhotoRecord] = {}
        self._lock = threading.RLock()
        self._disk_state: Optional[tuple[int, int]] = None

    def touch(self) -> None:
        """Create an empty backing file if none exists yet."""
        with self._lock:
            if self.path.exists():
                return
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write([])

    def load(self) -> None:
        with self._lock:
            self.touch()
            self._disk_state = self._stat()
            raw = self.path.read_text(encoding="utf-8")
            if not raw.strip():
                records: list[PhotoRecord] = []
            else:
                try:
                    records = _records_adapter.validate_json(raw)
                except ValidationError as exc:
                    raise ValueError(f"Malformed photo store {self.path}: {exc}") from exc
            self._records = {}
            for record in records:
                if record.filename in self._records:
                    logger.warning("Dropping duplicate stored record for %s", record.filename)
                    continue
                self._records[record.filename] = record
            logger.debug("Loaded %d photo records from %s", len(self._records), self.path)

    def refresh(self) -> bool:
        """Reload if the file changed on disk since it was last read or written."""
        with self._lock:
            if self._disk_state is not None and self._stat() == self._disk_state:
                return False
            self.load()
            return True

    def persist(self) -> None:
        with self._lock:
            payload = [record.to_stored() for record in self._records.values()]
            try:
                self._write(payload)
            except OSError as exc:
                raise PersistFailed(f"Cannot write photo store {self.path}: {exc}") from exc
            logger.debug("Persisted %d photo records to %s", len(payload), self.path)

    def erase(self) -> None:
        with self._lock:
            self._records = {}
            try:
                self._write([])
            except OSError as exc:
                raise PersistFailed(f"Cannot reset photo store {self.path}: {exc}") from exc
            logger.info("Erased photo store %s", self.path)

    def _write(self, payload: list[dict]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, self.path)
        self._disk_state = self._stat()

    def _stat(self) -> Optional[tuple[int, int]]:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return None
        return stat.st_mtime_ns, stat.st_size

    def get(self, filename: str) -> PhotoRecord:
        with self._lock:
            record = self._records.get(filename)
        if record is None:
            raise RecordNotFound(filename)
        return record

    def add(self, record: PhotoRecord) -> None:
        with self._lock:
            if record.filename in self._records:
                raise DuplicateRecord(record.filename)
            self._records[record.filename] = record
            if self.persist_on_add:
                self.persist()

    def remove(self, record: PhotoRecord) -> None:
        with self._lock:
            if record.filename not in self._records:
                raise RecordNotFound(record.filename)
            del self._records[record.filename]

    def get_all(self) -> list[PhotoRecord]:
        with self._lock:
            return list(self._records.values())
