from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from photo_gallery.core.errors import DiscoveryError, ExtractionFailed
from photo_gallery.ingest import (
    album_key_for,
    extract_record,
    read_capture_time,
    resize_image,
    scan_photos,
)


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_scan_photos_recurses_and_names_relative(tmp_path: Path, make_photo) -> None:
    make_photo(tmp_path / "b.jpg")
    make_photo(tmp_path / "a.JPG")
    make_photo(tmp_path / "2023" / "trip" / "c.jpeg")
    (tmp_path / "notes.txt").write_text("skip me")
    (tmp_path / "empty").mkdir()

    names = [source.filename for source in scan_photos(tmp_path)]
    assert names == ["a.JPG", "b.jpg", "2023/trip/c.jpeg"]


def test_scan_photos_non_recursive(tmp_path: Path, make_photo) -> None:
    make_photo(tmp_path / "top.jpg")
    make_photo(tmp_path / "sub" / "nested.jpg")

    names = [source.filename for source in scan_photos(tmp_path, recursive=False)]
    assert names == ["top.jpg"]


def test_scan_photos_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(DiscoveryError):
        list(scan_photos(tmp_path / "nope"))


def test_read_capture_time_parses_exif(tmp_path: Path, make_photo) -> None:
    path = make_photo(tmp_path / "with_exif.jpg", taken=_utc(2021, 1, 2, 3, 4, 5))
    assert read_capture_time(path) == _utc(2021, 1, 2, 3, 4, 5)


def test_read_capture_time_falls_back_to_datetime_tag(tmp_path: Path) -> None:
    path = tmp_path / "fallback.jpg"
    exif = Image.Exif()
    exif[306] = "2019:07:14 18:30:00"
    Image.new("RGB", (10, 10)).save(path, exif=exif)
    assert read_capture_time(path) == _utc(2019, 7, 14, 18, 30, 0)


def test_extraction_fails_without_exif(tmp_path: Path, make_photo) -> None:
    path = make_photo(tmp_path / "plain.jpg")
    with pytest.raises(ExtractionFailed):
        extract_record(path, "plain.jpg")


def test_extraction_fails_on_malformed_date(tmp_path: Path) -> None:
    path = tmp_path / "bad.jpg"
    exif = Image.Exif()
    exif[36867] = "not a date"
    Image.new("RGB", (10, 10)).save(path, exif=exif)
    with pytest.raises(ExtractionFailed):
        extract_record(path, "bad.jpg")


def test_extraction_fails_on_non_image(tmp_path: Path) -> None:
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"definitely not a jpeg")
    with pytest.raises(ExtractionFailed):
        extract_record(path, "broken.jpg")


def test_extract_record_sets_album_key(tmp_path: Path, make_photo) -> None:
    path = make_photo(tmp_path / "a.jpg", taken=_utc(2024, 1, 5, 10, 0, 0))
    record = extract_record(path, "a.jpg")
    assert record.filename == "a.jpg"
    assert record.capture_time == int(_utc(2024, 1, 5, 10).timestamp())
    assert record.album_key == 1704412800


def test_album_key_groups_by_utc_day() -> None:
    morning = int(_utc(2024, 1, 5, 0, 0, 1).timestamp())
    night = int(_utc(2024, 1, 5, 23, 59, 59).timestamp())
    next_day = int(_utc(2024, 1, 6, 0, 0, 30).timestamp())
    assert album_key_for(morning) == album_key_for(night)
    # Less than a minute apart but across midnight.
    assert album_key_for(night) != album_key_for(next_day)
    assert album_key_for(next_day) == int(_utc(2024, 1, 6).timestamp())


def test_resize_image_preserves_aspect_ratio() -> None:
    buf = BytesIO()
    Image.new("RGB", (400, 300), color="green").save(buf, format="PNG")

    thumb = resize_image(buf.getvalue(), 0, 162)
    with Image.open(BytesIO(thumb)) as img:
        assert img.format == "JPEG"
        assert img.size == (216, 162)

    wide = resize_image(buf.getvalue(), 100, 0)
    with Image.open(BytesIO(wide)) as img:
        assert img.size == (100, 75)


def test_resize_image_rejects_zero_size() -> None:
    buf = BytesIO()
    Image.new("RGB", (4, 4)).save(buf, format="JPEG")
    with pytest.raises(ValueError):
        resize_image(buf.getvalue(), 0, 0)


def test_resize_image_rejects_images_over_pixel_limit(monkeypatch) -> None:
    buf = BytesIO()
    Image.new("RGB", (400, 300), color="green").save(buf, format="PNG")
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

    with pytest.raises(ValueError, match="exceeds limit"):
        resize_image(buf.getvalue(), 0, 162)


def test_extraction_fails_on_images_over_pixel_limit(tmp_path: Path, make_photo, monkeypatch) -> None:
    path = make_photo(tmp_path / "huge.jpg", taken=_utc(2024, 1, 5), size=(400, 300))
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

    with pytest.raises(ExtractionFailed):
        read_capture_time(path)
