import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from sqlalchemy import inspect

from photo_gallery.core.errors import DuplicateRecord, RecordNotFound
from photo_gallery.core.models import PhotoRecord
from photo_gallery.index import SqlPhotoStore, init_db


def _store(tmp_path: Path) -> SqlPhotoStore:
    store = SqlPhotoStore(f"sqlite+pysqlite:///{tmp_path / 'photos.db'}")
    store.load()
    return store


def _record(filename: str, capture_time: int = 10) -> PhotoRecord:
    return PhotoRecord(filename=filename, capture_time=capture_time, album_key=0)


def test_init_db_creates_photos_table() -> None:
    engine = init_db("sqlite+pysqlite:///:memory:")
    columns = {col["name"] for col in inspect(engine).get_columns("photos")}
    assert columns == {"seq", "filename", "capture_time", "album_key"}


def test_add_get_remove(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.add(_record("a.jpg"))
    with pytest.raises(DuplicateRecord):
        store.add(_record("a.jpg", capture_time=11))
    assert store.get("a.jpg").capture_time == 10

    store.remove(_record("a.jpg"))
    with pytest.raises(RecordNotFound):
        store.get("a.jpg")
    with pytest.raises(RecordNotFound):
        store.remove(_record("a.jpg"))


def test_get_all_keeps_insertion_order_across_reopen(tmp_path: Path) -> None:
    store = _store(tmp_path)
    names = ["z.jpg", "a.jpg", "m.jpg"]
    for name in names:
        store.add(_record(name))
    store.persist()

    reopened = _store(tmp_path)
    assert [record.filename for record in reopened.get_all()] == names


def test_erase_removes_everything(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.add(_record("a.jpg"))
    store.erase()
    assert store.get_all() == []


def test_concurrent_add_succeeds_once(tmp_path: Path) -> None:
    store = _store(tmp_path)
    barrier = threading.Barrier(4)

    def _attempt(_: int) -> bool:
        barrier.wait()
        try:
            store.add(_record("race.jpg"))
            return True
        except DuplicateRecord:
            return False

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(_attempt, range(4)))
    assert results.count(True) == 1
    assert len(store.get_all()) == 1


def test_refresh_sees_rows_from_other_writers(tmp_path: Path) -> None:
    reader = _store(tmp_path)
    writer = _store(tmp_path)
    writer.add(_record("a.jpg"))

    assert reader.refresh() is False
    assert [record.filename for record in reader.get_all()] == ["a.jpg"]
