"""Page descriptors for gallery and index pages, and the URL contract.

Rendering and writing pages belongs to the host site; these classes only
carry where a page goes and the data its layout receives.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from imagegallery.core.models import Gallery, GalleryConfig
from imagegallery.core.services.interfaces import DefaultsProvider, NullDefaults


def gallery_url(config: GalleryConfig, year: int, month: int, gallery_id: str) -> str:
    """Return `/<path>/<year>/<MM>/<id>.html`."""
    return "/" + "/".join(config.path_segments(year, month) + [f"{gallery_id}.html"])


def gallery_index_url(config: GalleryConfig, year: int) -> str:
    """Return `/<path>/<year>/`."""
    return "/" + "/".join(config.path_segments(year)) + "/"


def make_title(config: GalleryConfig, *parts: Any) -> str:
    """Join the title prefix and `parts` with the configured separator."""
    return f" {config.title_seperator} ".join(str(part) for part in (config.title_prefix, *parts))


class Page:
    """A page placed at `dir/name` with layout data.

    `get` consults the page's own data first, then the defaults provider.
    """

    page_type = "pages"

    def __init__(
        self,
        dir_segments: list[str],
        basename: str,
        data: Mapping[str, Any],
        defaults: DefaultsProvider | None = None,
    ) -> None:
        self.dir = "/".join(dir_segments)
        self.basename = basename
        self.ext = ".html"
        self.name = f"{basename}{self.ext}"
        self.data = dict(data)
        self._defaults = defaults or NullDefaults()

    @property
    def relative_path(self) -> str:
        return f"{self.dir}/{self.name}" if self.dir else self.name

    @property
    def url(self) -> str:
        return f"/{self.relative_path}"

    def get(self, key: str, default: Any = None) -> Any:
        """Return the page value for `key`, falling back to configured defaults."""
        if key in self.data:
            return self.data[key]
        value = self._defaults.find(self.relative_path, self.page_type, key)
        return default if value is None else value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.relative_path!r})"


class GalleryPage(Page):
    """The page showing one gallery."""

    page_type = "galleries"

    def __init__(
        self, gallery: Gallery, config: GalleryConfig, defaults: DefaultsProvider | None = None
    ) -> None:
        super().__init__(
            config.path_segments(gallery.year, gallery.month),
            gallery.id,
            {
                "layout": "gallery_page",
                "gallery": gallery,
                "year": gallery.year,
                "title": make_title(config, gallery.year, gallery.name),
            },
            defaults,
        )
        self.gallery = gallery


class GalleryIndexPage(Page):
    """The page listing all galleries of one year."""

    page_type = "gallery_indexes"

    def __init__(
        self,
        year: int,
        galleries: list[Gallery],
        config: GalleryConfig,
        defaults: DefaultsProvider | None = None,
        override_dir: list[str] | None = None,
    ) -> None:
        super().__init__(
            override_dir if override_dir is not None else config.path_segments(year),
            "index",
            {
                "layout": "gallery_index",
                "year": year,
                "galleries": galleries,
                "title": make_title(config, year),
            },
            defaults,
        )
        self.year = year
        self.galleries = galleries
