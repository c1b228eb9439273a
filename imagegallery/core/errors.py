"""Exceptions raised while building galleries.

Every exception here is fatal for the build. Absent configuration and an
absent galleries directory are only warnings and have no exception type.
"""

from __future__ import annotations

from pathlib import Path


class GalleryError(Exception):
    """Base class for gallery build failures."""


class ConfigurationError(GalleryError):
    """A configuration value has the wrong shape."""


class MetadataParseError(GalleryError):
    """A `_metadata.*` file could not be parsed."""

    def __init__(self, path: str | Path, cause: Exception) -> None:
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Failed to parse gallery metadata file {self.path}: {cause}")


class DateResolutionError(GalleryError):
    """No date could be derived for a gallery."""

    def __init__(self, gallery_path: str | Path) -> None:
        self.gallery_path = str(gallery_path)
        super().__init__(
            f"Gallery at {self.gallery_path} has no datetime specified - it needs to be in "
            "EXIF data, the gallery prefix or the _metadata file"
        )


class ImageProcessingError(GalleryError):
    """A source image could not be decoded or its output could not be written."""

    def __init__(self, path: str | Path, cause: Exception) -> None:
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Failed to process image {self.path}: {cause}")
