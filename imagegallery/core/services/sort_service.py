"""Ordering and grouping of galleries and their images.

Images sort newest first with undated images last; galleries sort newest
first and are bucketed by calendar year for the index pages.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePosixPath

from imagegallery.core.errors import DateResolutionError
from imagegallery.core.models import Gallery, GalleryIdentity, GalleryImage, YearBucket

HIGHLIGHT_PREFIX = "hl_"
HIGHLIGHT_SUFFIX = "_hl"


def is_highlight(image: GalleryImage) -> bool:
    """True when the source file stem starts with `hl_` or ends with `_hl`."""
    stem = PurePosixPath(image.source_path).stem
    return stem.startswith(HIGHLIGHT_PREFIX) or stem.endswith(HIGHLIGHT_SUFFIX)


class SortService:
    """Provides sorting and grouping utilities for galleries."""

    def sort_images(self, images: Iterable[GalleryImage]) -> list[GalleryImage]:
        """Return images by capture time descending, undated images last."""
        images = list(images)
        dated = [image for image in images if image.capture_time is not None]
        undated = [image for image in images if image.capture_time is None]
        dated.sort(key=lambda image: image.capture_time, reverse=True)
        return dated + undated

    def select_highlight(self, images: list[GalleryImage]) -> GalleryImage:
        """Return the first highlight-named image, else the first image.

        Args:
            images: Images already in gallery order; must not be empty.
        """
        for image in images:
            if is_highlight(image):
                return image
        return images[0]

    def assemble(self, identity: GalleryIdentity, images: Iterable[GalleryImage]) -> Gallery:
        """Build the final gallery from a resolved identity and its processed images."""
        if identity.date is None:
            raise DateResolutionError(identity.id)
        ordered = self.sort_images(images)
        if not ordered:
            raise ValueError(f"Gallery {identity.id} has no images")
        return Gallery(
            id=identity.id,
            name=identity.name,
            images=tuple(ordered),
            highlight_image=self.select_highlight(ordered),
            date=identity.date,
            extra=dict(identity.extra),
        )

    def sort_galleries(self, galleries: Iterable[Gallery]) -> list[Gallery]:
        """Return galleries by date descending."""
        return sorted(galleries, key=lambda gallery: gallery.date, reverse=True)

    def group_by_year(self, galleries: Iterable[Gallery]) -> list[YearBucket]:
        """Bucket galleries by year, keeping their relative order.

        Buckets come out in order of first appearance, i.e. newest year first
        for galleries already sorted by `sort_galleries`.
        """
        buckets: dict[int, YearBucket] = {}
        for gallery in galleries:
            bucket = buckets.setdefault(gallery.year, YearBucket(year=gallery.year))
            bucket.galleries.append(gallery)
        return list(buckets.values())

    def gallery_years(self, galleries: Iterable[Gallery]) -> list[int]:
        """Return the distinct gallery years, ascending."""
        return sorted({gallery.year for gallery in galleries})
