"""Gallery identity resolution.

A gallery's id, display name and date come from several sources. Each step
of `GalleryIdentityBuilder` takes the current immutable snapshot and returns
a new one, so the precedence is the order the steps are applied in:

1. directory name (`YYYY-MM-DD_rest` convention, or the name verbatim),
2. earliest image capture time,
3. metadata file fields, `datetime` included.

A gallery still lacking a date afterwards is a fatal error.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import datetime
import re
from typing import Any

from loguru import logger

from imagegallery.core.errors import DateResolutionError
from imagegallery.core.models import GalleryDirectoryEntry, GalleryIdentity

GALLERY_DIR_REGEX = re.compile(r"^(\d{4})[-_]?(\d{2})[-_]?(\d{2})[-_]?(.*)$")
_NAME_SEPARATORS = re.compile(r"[_-]+")

# Keys a metadata file may not override; they are computed from the images.
RESERVED_KEYS = frozenset({"images", "highlight_image"})


def display_name(slug: str) -> str:
    """Turn `summer_trip-2` into `Summer Trip 2`."""
    return " ".join(part.capitalize() for part in _NAME_SEPARATORS.split(slug) if part)


def earliest_capture_time(entries: Iterable[GalleryDirectoryEntry]) -> datetime | None:
    """Return the earliest known capture time, or None when no entry has one."""
    times = [entry.capture_time for entry in entries if entry.capture_time is not None]
    return min(times) if times else None


class GalleryIdentityBuilder:
    """Applies identity sources to a gallery in a fixed precedence order."""

    def __init__(self, directory_name: str) -> None:
        self._identity = self._from_directory_name(directory_name)

    @property
    def identity(self) -> GalleryIdentity:
        return self._identity

    def _from_directory_name(self, directory_name: str) -> GalleryIdentity:
        match = GALLERY_DIR_REGEX.match(directory_name)
        if not match:
            logger.debug(
                "Gallery name {} doesn't match the expected regex {}",
                directory_name,
                GALLERY_DIR_REGEX.pattern,
            )
            return GalleryIdentity(id=directory_name, name=display_name(directory_name))

        year, month, day, slug = match.groups()
        try:
            date = datetime(int(year), int(month), int(day))
        except ValueError:
            # Digits that are not a calendar date, e.g. `2023-13-45_x`.
            logger.debug("Gallery name {} has an invalid date prefix", directory_name)
            date = None
        return GalleryIdentity(id=slug, name=display_name(slug), date=date)

    def apply_capture_times(
        self, entries: Iterable[GalleryDirectoryEntry]
    ) -> GalleryIdentityBuilder:
        """Let the earliest image capture time overwrite the date."""
        earliest = earliest_capture_time(entries)
        if earliest is not None:
            self._identity = replace(self._identity, date=earliest)
        return self

    def apply_metadata(self, metadata: Mapping[str, Any] | None) -> GalleryIdentityBuilder:
        """Let metadata file fields overwrite same-named fields.

        `metadata["datetime"]` must already be a `datetime`.
        """
        if not metadata:
            return self

        changes: dict[str, Any] = {}
        extra = dict(self._identity.extra)
        for key, value in metadata.items():
            if key == "datetime":
                changes["date"] = value
            elif key in ("id", "name"):
                changes[key] = str(value)
            elif key in RESERVED_KEYS:
                logger.debug("Ignoring reserved metadata key {}", key)
            else:
                extra[key] = value
        self._identity = replace(self._identity, extra=extra, **changes)
        return self

    def build(self, gallery_path: str) -> GalleryIdentity:
        """Return the resolved identity, failing when no date was found."""
        if self._identity.date is None:
            raise DateResolutionError(gallery_path)
        return self._identity


def resolve_identity(
    gallery_path: str,
    directory_name: str,
    entries: Iterable[GalleryDirectoryEntry],
    metadata: Mapping[str, Any] | None = None,
) -> GalleryIdentity:
    """Resolve id, name and date for the gallery at `gallery_path`."""
    return (
        GalleryIdentityBuilder(directory_name)
        .apply_capture_times(entries)
        .apply_metadata(metadata)
        .build(gallery_path)
    )
