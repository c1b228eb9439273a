"""Settings access helpers for JSON-based site configuration."""

from __future__ import annotations

from collections.abc import Mapping
import json
from pathlib import Path
from typing import Any

from imagegallery.core.errors import ConfigurationError
from imagegallery.core.models import GalleryConfig, Size
from imagegallery.infrastructure.logging import log_once

GALLERY_SECTION = "gallery"


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access."""

    def __init__(self, settings_path: str | Path) -> None:
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"Site configuration not found: {self._path}")
        try:
            with self._path.open("r", encoding="utf-8") as f:
                self._data = json.load(f)
        except ValueError as ex:
            raise ConfigurationError(f"Invalid site configuration {self._path}: {ex}") from ex

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node


def _parse_size(key: str, raw: Any) -> Size:
    if isinstance(raw, Size):
        return raw
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"gallery.{key} must be a mapping with x and y, got {raw!r}")
    try:
        size = Size(int(raw["x"]), int(raw["y"]))
    except (KeyError, TypeError, ValueError) as ex:
        raise ConfigurationError(f"gallery.{key} must define integer x and y: {ex}") from ex
    if size.x <= 0 or size.y <= 0:
        raise ConfigurationError(f"gallery.{key} must be positive, got {size}")
    return size


def _parse_bool(key: str, raw: Any) -> bool:
    if not isinstance(raw, bool):
        raise ConfigurationError(f"gallery.{key} must be true or false, got {raw!r}")
    return raw


def load_gallery_config(settings: JsonSettings | None) -> GalleryConfig:
    """Merge the `gallery` section of the site settings over the defaults.

    The merge is shallow: a configured `thumbnail_size` replaces the default
    one entirely.
    """
    if settings is None:
        log_once("WARNING", "No site configuration found, defaults will be used")
        return GalleryConfig()

    section = settings.get(GALLERY_SECTION)
    if not section:
        log_once("WARNING", "No gallery configuration found, defaults will be used")
        return GalleryConfig()
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"'{GALLERY_SECTION}' must be a mapping, got {section!r}")

    defaults = GalleryConfig()
    image_size = section.get("image_size")
    return GalleryConfig(
        path=str(section.get("path", defaults.path) or ""),
        generate_root_index=_parse_bool(
            "generate_root_index",
            section.get("generate_root_index", defaults.generate_root_index),
        ),
        image_size=_parse_size("image_size", image_size) if image_size else None,
        thumbnail_size=_parse_size(
            "thumbnail_size", section.get("thumbnail_size", defaults.thumbnail_size)
        ),
        title_prefix=str(section.get("title_prefix", defaults.title_prefix)),
        title_seperator=str(section.get("title_seperator", defaults.title_seperator)),
    )


class FrontmatterDefaults:
    """Page defaults from the site `defaults` list.

    Each entry looks like `{"scope": {"type": "galleries", "path": "gallery"},
    "values": {...}}`. An entry applies when its scope type matches the page
    type and its scope path prefixes the page path; missing scope keys match
    everything. Later entries win.
    """

    def __init__(self, settings: JsonSettings | None) -> None:
        raw = settings.get("defaults", []) if settings is not None else []
        self._entries: list[tuple[str | None, str, Mapping[str, Any]]] = []
        if isinstance(raw, list):
            for item in raw:
                if not isinstance(item, dict) or not isinstance(item.get("values"), dict):
                    continue
                scope = item.get("scope") or {}
                scope_type = scope.get("type")
                scope_path = str(scope.get("path", "") or "").strip("/")
                self._entries.append((scope_type, scope_path, item["values"]))

    def find(self, relative_path: str, page_type: str, key: str) -> Any:
        """Return the configured default for `key`, or None."""
        found = None
        for scope_type, scope_path, values in self._entries:
            if scope_type and scope_type != page_type:
                continue
            if scope_path and not relative_path.startswith(scope_path):
                continue
            if key in values:
                found = values[key]
        return found
