from __future__ import annotations

import logging
import threading

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from photo_gallery.core.errors import DuplicateRecord, PersistFailed, RecordNotFound
from photo_gallery.core.models import PhotoRecord

from .schema import PhotoRow, init_db, session_factory

logger = logging.getLogger(__name__)


def _to_record(row: PhotoRow) -> PhotoRecord:
    return PhotoRecord(filename=row.filename, capture_time=row.capture_time, album_key=row.album_key)


class SqlPhotoStore:
    """Photo records stored in a SQL table.

    Each add commits on its own, so persist() has nothing left to write.
    The unique filename constraint decides insert races, including races
    with other processes sharing the database.
    """

    def __init__(self, database_url: str | Engine):
        self._database_url = database_url
        self._engine: Engine | None = None
        self._sessions = None
        self._lock = threading.RLock()

    def _session(self):
        if self._sessions is None:
            self.load()
        return self._sessions()

    def touch(self) -> None:
        self.load()

    def load(self) -> None:
        with self._lock:
            if self._engine is None:
                self._engine = init_db(self._database_url)
                self._sessions = session_factory(self._engine)
                logger.info(
                    "Photo store ready on %s",
                    self._engine.url.render_as_string(hide_password=True),
                )

    def refresh(self) -> bool:
        # Queries read the database directly, so there is no cached state to reload.
        self.load()
        return False

    def persist(self) -> None:
        # Records are committed as they are added; just verify the database is reachable.
        try:
            with self._session() as session:
                session.execute(select(PhotoRow.seq).limit(1))
        except SQLAlchemyError as exc:
            raise PersistFailed(f"Photo store unreachable: {exc}") from exc

    def erase(self) -> None:
        with self._lock, self._session() as session:
            try:
                session.execute(delete(PhotoRow))
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise PersistFailed(f"Cannot reset photo store: {exc}") from exc
        logger.info("Erased photo store")

    def get(self, filename: str) -> PhotoRecord:
        with self._session() as session:
            row = session.scalar(select(PhotoRow).where(PhotoRow.filename == filename))
            if row is None:
                raise RecordNotFound(filename)
            return _to_record(row)

    def add(self, record: PhotoRecord) -> None:
        with self._lock, self._session() as session:
            session.add(
                PhotoRow(
                    filename=record.filename,
                    capture_time=record.capture_time,
                    album_key=record.album_key,
                )
            )
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateRecord(record.filename) from exc

    def remove(self, record: PhotoRecord) -> None:
        with self._lock, self._session() as session:
            result = session.execute(delete(PhotoRow).where(PhotoRow.filename == record.filename))
            session.commit()
            if result.rowcount == 0:
                raise RecordNotFound(record.filename)

    def get_all(self) -> list[PhotoRecord]:
        with self._session() as session:
            rows = session.scalars(select(PhotoRow).order_by(PhotoRow.seq.asc())).all()
            return [_to_record(row) for row in rows]
