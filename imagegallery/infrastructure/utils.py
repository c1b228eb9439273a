"""Utilities for EXIF extraction and date parsing.

`read_exif` is the expensive call the EXIF cache memoizes: it decodes image
headers with Pillow and returns a small JSON-safe mapping of named tags.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any

from PIL import ExifTags, Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from imagegallery.core.errors import ImageProcessingError
from imagegallery.infrastructure.logging import log_once

EXIF_DT_FMT = "%Y:%m:%d %H:%M:%S"

# Tags kept from the decoded EXIF; DateTimeOriginal is the one the build needs.
EXIF_TAGS = {
    36867: "DateTimeOriginal",
    306: "DateTime",
    271: "Make",
    272: "Model",
}

_heif_registered = False


def ensure_heif_support() -> None:
    """Register the HEIC/HEIF opener with Pillow once."""
    global _heif_registered  # pylint: disable=global-statement
    if not _heif_registered:
        register_heif_opener()
        _heif_registered = True


ensure_heif_support()


def _tag_value(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    text = str(value).strip().strip("\x00")
    return text or None


def read_exif(path: str | Path) -> dict[str, str]:
    """Return the named EXIF string tags of the image at `path`.

    Tags are looked up in the Exif sub-IFD first, then in IFD0, where some
    writers put them.

    Raises:
        ImageProcessingError: when the file cannot be opened as an image,
            including images over Pillow's `MAX_IMAGE_PIXELS` bomb limit.
    """
    try:
        with Image.open(path) as im:
            exif = im.getexif()
            sub_ifd = exif.get_ifd(ExifTags.IFD.Exif)
            result: dict[str, str] = {}
            for tag, name in EXIF_TAGS.items():
                value = _tag_value(sub_ifd.get(tag)) or _tag_value(exif.get(tag))
                if value:
                    result[name] = value
            return result
    except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError) as ex:
        raise ImageProcessingError(path, ex) from ex


def parse_exif_datetime(exif: Mapping[str, str], source: str = "") -> datetime | None:
    """Parse `DateTimeOriginal` from `exif`; None when absent or malformed."""
    value = exif.get("DateTimeOriginal")
    if not value:
        return None
    try:
        return datetime.strptime(value, EXIF_DT_FMT)
    except ValueError:
        log_once("WARNING", f"Ignoring malformed EXIF DateTimeOriginal {value!r} in {source}")
        return None


def parse_metadata_datetime(value: Any) -> datetime:
    """Parse a metadata `datetime` value into a naive `datetime`.

    Accepts ISO 8601 text (`2023-05-01`, `2023-05-01 14:30`,
    `2023-05-01T14:30:00+02:00`) or date/datetime values produced by the
    TOML parser. Timezone offsets are dropped, keeping the wall-clock time.

    Raises:
        ValueError: when the value is not a recognizable date.
    """
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        result = datetime.fromisoformat(value.strip())
    else:
        raise ValueError(f"unsupported datetime value {value!r}")
    return result.replace(tzinfo=None)
