"""Core domain models for galleries and their processed images."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Size:
    """A pixel bounding box."""

    x: int
    y: int

    def __str__(self) -> str:
        return f"{self.x}x{self.y}"


@dataclass(frozen=True)
class GalleryConfig:
    """Gallery options merged from the site configuration and defaults."""

    path: str = "gallery"
    generate_root_index: bool = False
    image_size: Size | None = None
    thumbnail_size: Size = Size(512, 512)
    title_prefix: str = "Photos"
    title_seperator: str = "|"

    def path_segments(self, year: int | None = None, month: int | None = None) -> list[str]:
        """Return the output path segments, optionally down to a year and month."""
        segments = [part for part in self.path.split("/") if part]
        if year is not None:
            segments.append(str(year))
        if month is not None:
            segments.append(f"{month:02d}")
        return segments


@dataclass(frozen=True)
class GalleryDirectoryEntry:
    """A source image found in a gallery directory, before output paths are known."""

    path: str
    capture_time: datetime | None = None


@dataclass(frozen=True)
class GalleryImage:
    """A processed image: the two produced artifacts and the source they came from.

    `output_path` and `thumbnail_path` are web-root relative (leading `/`).
    `source_path` is the site-relative identity path the output names hash.
    """

    output_path: str
    thumbnail_path: str
    capture_time: datetime | None
    source_path: str

    def to_template(self) -> dict[str, Any]:
        """Return the field mapping exposed to templates."""
        return {
            "path": self.output_path,
            "thumbnail_path": self.thumbnail_path,
            "creation_datetime": self.capture_time,
            "original_path": self.source_path,
        }


@dataclass(frozen=True)
class GalleryIdentity:
    """Partially or fully resolved identity of a gallery.

    `extra` holds metadata file keys that are not gallery fields.
    """

    id: str
    name: str
    date: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Gallery:
    """A named, dated collection of processed images."""

    id: str
    name: str
    images: tuple[GalleryImage, ...]
    highlight_image: GalleryImage
    date: datetime
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def year(self) -> int:
        return self.date.year

    @property
    def month(self) -> int:
        return self.date.month

    def to_template(self) -> dict[str, Any]:
        """Return the field mapping exposed to templates.

        Metadata keys that are not gallery fields are included verbatim;
        the gallery fields always win over them.
        """
        data: dict[str, Any] = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "name": self.name,
                "images": [image.to_template() for image in self.images],
                "highlight_image": self.highlight_image.to_template(),
                "datetime": {
                    "year": self.date.year,
                    "month": self.date.month,
                    "day": self.date.day,
                },
            }
        )
        return data


@dataclass
class YearBucket:
    """Galleries sharing the calendar year of their date, newest first."""

    year: int
    galleries: list[Gallery] = field(default_factory=list)
