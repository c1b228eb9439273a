"""Build orchestration: from the galleries tree to galleries, pages and image files."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import Executor, Future, ThreadPoolExecutor, as_completed
from functools import partial
import os
from pathlib import Path
from typing import TypeVar

from loguru import logger

from imagegallery.core.models import Gallery, GalleryConfig, GalleryDirectoryEntry
from imagegallery.core.services.identity_service import resolve_identity
from imagegallery.core.services.interfaces import BuildResult, DefaultsProvider, MemoCache
from imagegallery.core.services.page_service import GalleryIndexPage, GalleryPage
from imagegallery.core.services.sort_service import SortService
from imagegallery.infrastructure.exif_cache import ExifCache
from imagegallery.infrastructure.gallery_scanner import (
    GALLERIES_DIR,
    GalleryDirectory,
    scan_galleries,
)
from imagegallery.infrastructure.image_service import GalleryStaticFile, ImageService
from imagegallery.infrastructure.logging import log_once
from imagegallery.infrastructure.metadata_repository import MetadataRepository
from imagegallery.infrastructure.utils import parse_exif_datetime, read_exif

T = TypeVar("T")


def run_all(executor: Executor, tasks: Iterable[Callable[[], T]]) -> list[T]:
    """Run `tasks` on `executor` and return their results in task order.

    The first failure cancels every task that has not started yet and is
    re-raised.
    """
    futures: list[Future] = [executor.submit(task) for task in tasks]
    try:
        for future in as_completed(futures):
            future.result()
    except BaseException:
        for future in futures:
            future.cancel()
        raise
    return [future.result() for future in futures]


class GalleryGenerator:
    """Builds the gallery model of a site and writes its image artifacts.

    Args:
        source_dir: Site source directory holding the galleries directory.
        config: Gallery options.
        exif_cache: Cache for decoded EXIF data; a fresh in-memory one by default.
        max_workers: Worker threads for EXIF reads and image processing.
        defaults: Provider of page values the pages don't set themselves.
        galleries_dir: Name of the galleries directory inside `source_dir`.
    """

    def __init__(
        self,
        source_dir: str | Path,
        config: GalleryConfig | None = None,
        exif_cache: MemoCache | None = None,
        max_workers: int | None = None,
        defaults: DefaultsProvider | None = None,
        galleries_dir: str = GALLERIES_DIR,
        metadata_repo: MetadataRepository | None = None,
        sorter: SortService | None = None,
    ) -> None:
        self._source_dir = Path(source_dir)
        self._config = config or GalleryConfig()
        self._exif_cache = exif_cache if exif_cache is not None else ExifCache()
        self._max_workers = max_workers or os.cpu_count() or 1
        self._defaults = defaults
        self._galleries_dir = galleries_dir
        self._metadata_repo = metadata_repo or MetadataRepository()
        self._sorter = sorter or SortService()
        self._images = ImageService(self._config, self._source_dir)

    def generate(self) -> BuildResult:
        """Scan the galleries tree and build the in-memory model.

        No image is decoded for pixels here; only EXIF headers are read
        (through the cache).

        Raises:
            GalleryError: on any metadata, date or image decode failure.
        """
        directories = scan_galleries(self._source_dir, self._galleries_dir)
        if directories is None:
            logger.warning(
                "No directory found at {}, skipping gallery generation",
                self._source_dir / self._galleries_dir,
            )
            return BuildResult()

        result = BuildResult()
        galleries: list[Gallery] = []
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            for directory in directories:
                gallery, files = self._build_gallery(directory, executor)
                galleries.append(gallery)
                result.static_files[directory.relative_path] = files

        result.galleries = self._sorter.sort_galleries(galleries)
        result.gallery_years = self._sorter.gallery_years(result.galleries)
        result.pages = self._make_pages(result.galleries, result.gallery_years)
        logger.info(
            "Found {} galleries across {} years", len(result.galleries), len(result.gallery_years)
        )
        return result

    def write(self, result: BuildResult, dest: str | Path) -> int:
        """Write every image artifact of `result` under `dest`.

        Galleries are written one after another, the images of a gallery in
        parallel. Returns the number of files actually written.

        Raises:
            ImageProcessingError: on the first image that fails; the
                remaining work is cancelled.
        """
        written = 0
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            for files in result.static_files.values():
                outcomes = run_all(executor, [partial(f.write, dest) for f in files])
                written += sum(1 for outcome in outcomes if outcome)
        logger.info("Wrote {} gallery image files", written)
        return written

    def build(self, dest: str | Path) -> BuildResult:
        """Generate the model and write its image files under `dest`."""
        result = self.generate()
        result.written = self.write(result, dest)
        return result

    def _build_gallery(
        self, directory: GalleryDirectory, executor: Executor
    ) -> tuple[Gallery, list[GalleryStaticFile]]:
        entries = run_all(
            executor, [partial(self._load_entry, path) for path in directory.source_paths()]
        )
        metadata = self._metadata_repo.load(directory.path)
        identity = resolve_identity(str(directory.path), directory.name, entries, metadata)

        files: list[GalleryStaticFile] = []
        images = []
        for entry in entries:
            image_file, thumb_file = self._images.static_files(
                entry.path, identity.date.year, identity.date.month
            )
            files.extend((image_file, thumb_file))
            images.append(self._images.gallery_image(entry, image_file, thumb_file))

        return self._sorter.assemble(identity, images), files

    def _load_entry(self, source_path: str) -> GalleryDirectoryEntry:
        exif = self._exif_cache.get_or_compute(source_path, partial(self._read_exif, source_path))
        capture_time = parse_exif_datetime(exif, source_path)
        return GalleryDirectoryEntry(path=source_path, capture_time=capture_time)

    def _read_exif(self, source_path: str) -> dict[str, str]:
        log_once("INFO", "Loading EXIF data. This may take some time on the first run")
        return read_exif(self._source_dir / source_path)

    def _make_pages(self, galleries: list[Gallery], years: list[int]) -> list:
        pages: list = [GalleryPage(gallery, self._config, self._defaults) for gallery in galleries]
        for bucket in self._sorter.group_by_year(galleries):
            pages.append(
                GalleryIndexPage(bucket.year, bucket.galleries, self._config, self._defaults)
            )

        if self._config.generate_root_index and years:
            last_year = max(years)
            pages.append(
                GalleryIndexPage(
                    last_year,
                    [gallery for gallery in galleries if gallery.year == last_year],
                    self._config,
                    self._defaults,
                    override_dir=self._config.path_segments(),
                )
            )
        return pages
