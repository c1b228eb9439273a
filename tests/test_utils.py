from __future__ import annotations

from datetime import date, datetime

from imaging import make_image
from PIL import Image
import pytest

from imagegallery.core.errors import ImageProcessingError
from imagegallery.infrastructure.utils import (
    parse_exif_datetime,
    parse_metadata_datetime,
    read_exif,
)


def test_read_exif_returns_capture_time(tmp_path):
    path = make_image(tmp_path / "a.jpg", capture_time=datetime(2022, 3, 4, 5, 6, 7))

    exif = read_exif(path)

    assert exif["DateTimeOriginal"] == "2022:03:04 05:06:07"
    assert parse_exif_datetime(exif) == datetime(2022, 3, 4, 5, 6, 7)


def test_read_exif_without_tags(tmp_path):
    path = make_image(tmp_path / "plain.png")

    assert read_exif(path) == {}


def test_read_exif_on_non_image_raises(tmp_path):
    path = tmp_path / "notes.jpg"
    path.write_text("hello", encoding="utf-8")

    with pytest.raises(ImageProcessingError):
        read_exif(path)


def test_malformed_exif_date_is_treated_as_absent(log_messages):
    exif = {"DateTimeOriginal": "0000:00:00 00:00:00"}

    assert parse_exif_datetime(exif, "a.jpg") is None
    assert parse_exif_datetime(exif, "a.jpg") is None
    warnings = [m for m in log_messages if "malformed EXIF" in m]
    assert len(warnings) == 1


def test_missing_exif_date():
    assert parse_exif_datetime({}) is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2021-07-04", datetime(2021, 7, 4)),
        ("2021-07-04 09:10", datetime(2021, 7, 4, 9, 10)),
        ("2021-07-04T09:10:11Z", datetime(2021, 7, 4, 9, 10, 11)),
        (date(2021, 7, 4), datetime(2021, 7, 4)),
        (datetime(2021, 7, 4, 1, 2), datetime(2021, 7, 4, 1, 2)),
    ],
)
def test_parse_metadata_datetime(value, expected):
    assert parse_metadata_datetime(value) == expected


@pytest.mark.parametrize("value", ["yesterday", 20210704, None])
def test_parse_metadata_datetime_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_metadata_datetime(value)


def test_oversized_image_is_a_processing_error(tmp_path, monkeypatch):
    path = make_image(tmp_path / "panorama.jpg", size=(64, 48))
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

    with pytest.raises(ImageProcessingError) as excinfo:
        read_exif(path)

    assert str(path) in str(excinfo.value)
