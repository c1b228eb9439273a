from __future__ import annotations

import argparse
from pathlib import Path

from loguru import logger

from imagegallery.app.generator import GalleryGenerator
from imagegallery.core.errors import GalleryError
from imagegallery.infrastructure.exif_cache import ExifCache
from imagegallery.infrastructure.logging import init_logging
from imagegallery.infrastructure.settings import (
    FrontmatterDefaults,
    JsonSettings,
    load_gallery_config,
)

DEFAULT_CONFIG_NAME = "_config.json"
DEFAULT_CACHE_DIR = ".imagegallery-cache/exif"


def _load_settings(path: Path) -> JsonSettings | None:
    try:
        return JsonSettings(path)
    except FileNotFoundError:
        return None


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build gallery images and page data")
    parser.add_argument("source", help="Site source directory containing _galleries/")
    parser.add_argument("dest", help="Output directory")
    parser.add_argument(
        "--config", help=f"Site configuration (default: SOURCE/{DEFAULT_CONFIG_NAME})"
    )
    parser.add_argument(
        "--cache-dir", help=f"EXIF cache directory (default: SOURCE/{DEFAULT_CACHE_DIR})"
    )
    parser.add_argument("--workers", type=int, default=None, help="Worker threads")
    parser.add_argument("--log-dir", default=None, help="Also write rotating log files here")
    parser.add_argument("--verbose", action="store_true", help="Log debug messages")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    init_logging(args.log_dir, level="DEBUG" if args.verbose else "INFO")

    source = Path(args.source)
    config_path = Path(args.config) if args.config else source / DEFAULT_CONFIG_NAME
    try:
        settings = _load_settings(config_path)
        config = load_gallery_config(settings)
        cache = ExifCache(Path(args.cache_dir) if args.cache_dir else source / DEFAULT_CACHE_DIR)
        generator = GalleryGenerator(
            source,
            config,
            exif_cache=cache,
            max_workers=args.workers,
            defaults=FrontmatterDefaults(settings),
        )
        result = generator.build(args.dest)
    except GalleryError as ex:
        logger.error("{}", ex)
        return 1

    for page in result.pages:
        logger.debug("Page {} ({})", page.url, page.get("title"))
    logger.info(
        "Built {} galleries, {} pages, {} image files written",
        len(result.galleries),
        len(result.pages),
        result.written,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
