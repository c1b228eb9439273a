"""Core service interfaces and shared data structures.

Collaborators that the core layer depends on but does not implement are
described here as protocols; the infrastructure layer provides them.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, TypeVar

from imagegallery.core.models import Gallery

T = TypeVar("T")


class DefaultsProvider(Protocol):
    """Supplies page values that the page itself does not define."""

    def find(self, relative_path: str, page_type: str, key: str) -> Any:
        """Return the default for `key` on a page of `page_type`, or None."""
        ...


class NullDefaults:
    """Defaults provider that never supplies a value."""

    def find(self, relative_path: str, page_type: str, key: str) -> Any:
        return None


class MemoCache(Protocol):
    """Get-or-compute cache keyed by string."""

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        """Return the value for `key`, computing it at most once."""
        ...


class StaticFile(Protocol):
    """An output file realized when the site is written."""

    def relative_destination(self) -> str:
        """Return the destination path relative to the output root."""
        ...

    def write(self, dest: str | Path) -> bool:
        """Write the file under `dest`; return False when already up to date."""
        ...


@dataclass
class BuildResult:
    """Outcome of gallery generation, consumed by the rendering layer.

    Attributes:
        galleries: All galleries, newest first.
        gallery_years: Years having at least one gallery, ascending.
        pages: Gallery and index page descriptors.
        static_files: Image artifacts to write, keyed by the gallery source
            directory in build order.
        written: Number of image files written by the last write, 0 when
            everything was up to date.
    """

    galleries: list[Gallery] = field(default_factory=list)
    gallery_years: list[int] = field(default_factory=list)
    pages: list[Any] = field(default_factory=list)
    static_files: dict[str, list[StaticFile]] = field(default_factory=dict)
    written: int = 0

    @property
    def data(self) -> Mapping[str, Any]:
        """Site data exposed to templates under fixed keys."""
        return {
            "galleries": [gallery.to_template() for gallery in self.galleries],
            "gallery_years": list(self.gallery_years),
        }
