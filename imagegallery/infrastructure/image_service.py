"""Content-addressed image artifacts: naming, up-to-date checks and Pillow processing.

Every source image yields two files, the full image and a thumbnail, named
after the SHA-256 of the source's site-relative path. A file is rewritten
only when its modification time differs from the source's; after writing,
the output takes the source's modification time so the next build skips it.
"""

from __future__ import annotations

from collections.abc import Callable
import hashlib
import os
from pathlib import Path, PurePosixPath

from loguru import logger
from PIL import Image, ImageOps, UnidentifiedImageError

from imagegallery.core.errors import ImageProcessingError
from imagegallery.core.models import GalleryConfig, GalleryDirectoryEntry, GalleryImage, Size
from imagegallery.infrastructure.utils import ensure_heif_support

ensure_heif_support()

# Browsers can't show HEIC and friends. Going by extension isn't ideal, but
# it is good enough for files coming out of cameras and phones.
BROWSER_SUPPORTED_EXTENSIONS = frozenset({".png", ".jpeg", ".jpg"})
FALLBACK_FORMAT = "png"
THUMBNAIL_SUFFIX = "_t"
JPEG_QUALITY = 90

_PIL_FORMATS = {".png": "PNG", ".jpg": "JPEG", ".jpeg": "JPEG"}

Transform = Callable[[Image.Image], Image.Image]


def content_address(source_path: str) -> str:
    """Return the SHA-256 hex digest of a site-relative source path."""
    return hashlib.sha256(source_path.encode("utf-8")).hexdigest()


def resize_within(size: Size) -> Transform:
    """Shrink to fit inside `size` keeping the aspect ratio; never enlarge."""

    def _transform(image: Image.Image) -> Image.Image:
        image.thumbnail((size.x, size.y), Image.Resampling.LANCZOS)
        return image

    return _transform


def crop_to_fill(size: Size) -> Transform:
    """Cover `size` keeping the aspect ratio, then center-crop to exactly `size`."""

    def _transform(image: Image.Image) -> Image.Image:
        return ImageOps.fit(
            image, (size.x, size.y), Image.Resampling.LANCZOS, centering=(0.5, 0.5)
        )

    return _transform


def _identity(image: Image.Image) -> Image.Image:
    return image


def _mtime_seconds(stat: os.stat_result) -> int:
    return stat.st_mtime_ns // 1_000_000_000


def _ensure_dir(p: Path) -> None:
    """Create directory `p` if missing (including parents)."""
    p.mkdir(parents=True, exist_ok=True)


def _prepare_for_format(image: Image.Image, fmt: str) -> Image.Image:
    if fmt == "JPEG" and image.mode not in ("RGB", "L", "CMYK"):
        return image.convert("RGB")
    if fmt == "PNG" and image.mode not in ("1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"):
        return image.convert("RGBA")
    return image


class GalleryStaticFile:
    """One output artifact of a source image.

    Args:
        source_root: Site source directory the source path is relative to.
        source_path: Site-relative source path, `/`-separated.
        dest_dir: Output directory segments relative to the output root.
        dest_name: Output file name before any format fallback.
        transform: Variant-specific resize applied after orientation and strip.
        description: Human-readable target extents for logging.
    """

    def __init__(
        self,
        source_root: str | Path,
        source_path: str,
        dest_dir: list[str],
        dest_name: str,
        transform: Transform = _identity,
        description: str = "",
    ) -> None:
        self.source_path = source_path
        self.path = Path(source_root) / source_path
        self._dest_dir = list(dest_dir)
        self._transform = transform
        self._description = description

        stem, ext = os.path.splitext(dest_name)
        self.convert_format = ext.lower() not in BROWSER_SUPPORTED_EXTENSIONS
        if self.convert_format:
            self.dest_name = f"{stem}.{FALLBACK_FORMAT}"
            self.format = FALLBACK_FORMAT.upper()
        else:
            self.dest_name = dest_name
            self.format = _PIL_FORMATS[ext.lower()]

    def relative_destination(self) -> str:
        """Return the output path relative to the output root, `/`-separated."""
        return "/".join([*self._dest_dir, self.dest_name])

    def url(self) -> str:
        """Return the web-root relative path of the output."""
        return "/" + self.relative_destination()

    def destination(self, dest: str | Path) -> Path:
        """Return the output path under the output root `dest`."""
        return Path(dest).joinpath(*self._dest_dir, self.dest_name)

    def is_up_to_date(self, dest: str | Path) -> bool:
        """True when the output exists with the source's modification second."""
        dest_path = self.destination(dest)
        try:
            return _mtime_seconds(dest_path.stat()) == _mtime_seconds(self.path.stat())
        except FileNotFoundError:
            return False

    def write(self, dest: str | Path) -> bool:
        """Process the source into the output under `dest`.

        Returns:
            False when the output was already up to date, True when written.

        Raises:
            ImageProcessingError: when the source can't be decoded or the
                output can't be written.
        """
        dest_path = self.destination(dest)
        if self.is_up_to_date(dest):
            logger.debug("Skipping up to date image {}", dest_path)
            return False

        if self._description:
            logger.info("Processing image {} to {}", self.source_path, self._description)
        else:
            logger.info("Processing image {}", self.source_path)

        try:
            source_stat = self.path.stat()
            _ensure_dir(dest_path.parent)
            dest_path.unlink(missing_ok=True)

            with Image.open(self.path) as im:
                image = ImageOps.exif_transpose(im)
                if image.mode == "P":
                    image = image.convert("RGBA")
                # Strip EXIF, ICC profiles and other ancillary data.
                image.info = {}
                image = self._transform(image)
                image = _prepare_for_format(image, self.format)
                if self.format == "JPEG":
                    image.save(dest_path, format="JPEG", quality=JPEG_QUALITY)
                else:
                    image.save(dest_path, format=self.format)

            os.utime(dest_path, ns=(dest_path.stat().st_atime_ns, source_stat.st_mtime_ns))
        except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError) as ex:
            raise ImageProcessingError(self.path, ex) from ex
        return True

    def __repr__(self) -> str:
        return f"GalleryStaticFile({self.source_path!r} -> {self.relative_destination()!r})"


class ImageService:
    """Creates the output artifacts and records for a gallery's images."""

    def __init__(self, config: GalleryConfig, source_root: str | Path) -> None:
        self._config = config
        self._source_root = Path(source_root)

    def static_files(
        self, source_path: str, year: int, month: int
    ) -> tuple[GalleryStaticFile, GalleryStaticFile]:
        """Return the full image and thumbnail artifacts of `source_path`."""
        dest_dir = self._config.path_segments(year, month)
        sha = content_address(source_path)
        ext = PurePosixPath(source_path).suffix

        image_size = self._config.image_size
        image_file = GalleryStaticFile(
            self._source_root,
            source_path,
            dest_dir,
            f"{sha}{ext}",
            resize_within(image_size) if image_size else _identity,
            f"extents {image_size}" if image_size else "",
        )
        thumb_size = self._config.thumbnail_size
        thumb_file = GalleryStaticFile(
            self._source_root,
            source_path,
            dest_dir,
            f"{sha}{THUMBNAIL_SUFFIX}{ext}",
            crop_to_fill(thumb_size),
            str(thumb_size),
        )
        return image_file, thumb_file

    def gallery_image(
        self,
        entry: GalleryDirectoryEntry,
        image_file: GalleryStaticFile,
        thumb_file: GalleryStaticFile,
    ) -> GalleryImage:
        """Return the record of a source image and its two artifacts."""
        return GalleryImage(
            output_path=image_file.url(),
            thumbnail_path=thumb_file.url(),
            capture_time=entry.capture_time,
            source_path=entry.path,
        )
