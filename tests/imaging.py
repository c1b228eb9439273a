"""Sample image helpers shared by the tests."""

from __future__ import annotations

from datetime import datetime
import os
from pathlib import Path

from PIL import Image

SOURCE_MTIME = 1_600_000_000


def make_image(
    path: Path,
    size: tuple[int, int] = (64, 48),
    capture_time: datetime | None = None,
    orientation: int | None = None,
    color: tuple[int, int, int] = (200, 40, 40),
    fmt: str | None = None,
    mtime: int | None = SOURCE_MTIME,
) -> Path:
    """Write a solid-color image, optionally with EXIF capture time and orientation."""
    path.parent.mkdir(parents=True, exist_ok=True)
    image = Image.new("RGB", size, color)
    exif = Image.Exif()
    if capture_time is not None:
        exif[36867] = capture_time.strftime("%Y:%m:%d %H:%M:%S")
    if orientation is not None:
        exif[274] = orientation
    kwargs = {"exif": exif} if len(exif) else {}
    if fmt == "GIF" or path.suffix.lower() == ".gif":
        image = image.convert("P")
        kwargs = {}
    image.save(path, format=fmt, **kwargs)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path
