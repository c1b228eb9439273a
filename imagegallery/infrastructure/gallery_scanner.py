"""Discovery of gallery directories and their source images."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from loguru import logger

from imagegallery.infrastructure.metadata_repository import METADATA_STEM

GALLERIES_DIR = "_galleries"
IGNORED_FILES = frozenset({".ds_store", "thumbs.db"})


def is_gallery_image(file_name: str) -> bool:
    """True for files that count as gallery images.

    Metadata files (any extension) and OS clutter files are excluded; any
    other file is treated as an image.
    """
    if file_name.lower() in IGNORED_FILES:
        return False
    return PurePosixPath(file_name).stem != METADATA_STEM


@dataclass(frozen=True)
class GalleryDirectory:
    """A directory under the galleries root holding at least one image.

    Attributes:
        path: Absolute directory path.
        relative_path: Site-relative path, e.g. `_galleries/2023-05-01_trip`.
        image_files: Image file names, sorted.
    """

    path: Path
    relative_path: str
    image_files: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.path.name

    def source_paths(self) -> list[str]:
        """Return the site-relative identity path of every image."""
        return [f"{self.relative_path}/{file_name}" for file_name in self.image_files]


def scan_galleries(
    source_root: str | Path, galleries_dir: str = GALLERIES_DIR
) -> list[GalleryDirectory] | None:
    """Return every non-empty gallery directory below `source_root/galleries_dir`.

    Directories are found at any depth and returned in sorted path order; each
    one holds only its own files. Returns None when the galleries root does
    not exist.
    """
    root = Path(source_root) / galleries_dir
    if not root.is_dir():
        return None

    directories: list[GalleryDirectory] = []
    for directory in sorted(p for p in root.rglob("*") if p.is_dir()):
        image_files = sorted(
            child.name
            for child in directory.iterdir()
            if child.is_file() and is_gallery_image(child.name)
        )
        if not image_files:
            logger.debug("Skipping gallery directory without images {}", directory)
            continue
        relative = PurePosixPath(galleries_dir, *directory.relative_to(root).parts)
        directories.append(GalleryDirectory(directory, relative.as_posix(), image_files))
    return directories
