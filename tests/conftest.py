from __future__ import annotations

from datetime import datetime
import json
from pathlib import Path

from imaging import make_image
from loguru import logger
import pytest

from imagegallery.infrastructure.logging import reset_log_once
from imagegallery.infrastructure.settings import JsonSettings


@pytest.fixture(autouse=True)
def _reset_log_once():
    reset_log_once()
    yield
    reset_log_once()


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def make_settings(tmp_path: Path):
    """Write a site configuration file and return its settings."""

    def _make(data: dict) -> JsonSettings:
        path = tmp_path / "_config.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return JsonSettings(path)

    return _make


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A site source tree with three galleries.

    - 2023-05-01_summer-trip: two dated photos (one highlight-named), one undated
      PNG, plus OS clutter files.
    - 2022-12-24_xmas: one undated photo and a JSON metadata file.
    - misc: one undated photo and a TOML metadata file with id and date.
    """
    source = tmp_path / "site"
    galleries = source / "_galleries"

    trip = galleries / "2023-05-01_summer-trip"
    make_image(trip / "a.jpg", capture_time=datetime(2023, 5, 3, 12, 0, 0))
    make_image(trip / "hl_sunset.jpg", capture_time=datetime(2023, 5, 2, 9, 30, 0))
    make_image(trip / "c.png", size=(30, 90))
    (trip / ".DS_Store").write_bytes(b"\x00\x00")
    (trip / "Thumbs.db").write_bytes(b"\x00\x00")

    xmas = galleries / "2022-12-24_xmas"
    make_image(xmas / "one.jpg")
    (xmas / "_metadata.json").write_text(
        '{"name": "Christmas Eve", "location": "Home"}', encoding="utf-8"
    )

    misc = galleries / "misc"
    make_image(misc / "x.jpg")
    (misc / "_metadata.toml").write_text('id = "july"\ndatetime = 2021-07-04\n', encoding="utf-8")

    return source
