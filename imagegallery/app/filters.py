"""Jinja2 filters exposing the gallery URL contract to templates."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from jinja2 import Environment

from imagegallery.core.models import Gallery, GalleryConfig
from imagegallery.core.services import page_service


def register_filters(env: Environment, config: GalleryConfig) -> Environment:
    """Install `gallery_url` and `gallery_index_url` on `env` and return it."""

    def gallery_url(gallery: Gallery | Mapping[str, Any]) -> str:
        if isinstance(gallery, Gallery):
            return page_service.gallery_url(config, gallery.year, gallery.month, gallery.id)
        created = gallery["datetime"]
        return page_service.gallery_url(config, created["year"], created["month"], gallery["id"])

    def gallery_index_url(year: int) -> str:
        return page_service.gallery_index_url(config, year)

    env.filters["gallery_url"] = gallery_url
    env.filters["gallery_index_url"] = gallery_index_url
    return env


def make_environment(config: GalleryConfig, **options: Any) -> Environment:
    """Return an autoescaping environment with the gallery filters installed."""
    options.setdefault("autoescape", True)
    return register_filters(Environment(**options), config)
