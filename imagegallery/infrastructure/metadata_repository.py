"""Per-gallery metadata files.

A gallery directory may hold one `_metadata.<ext>` file. Supported formats
are tried in priority order and the first existing file wins. Its keys are
returned flat; `datetime` is parsed into a `datetime` (see
`parse_metadata_datetime` for the accepted formats).
"""

from __future__ import annotations

from collections.abc import Callable
import json
from pathlib import Path
import tomllib
from typing import Any

from loguru import logger

from imagegallery.core.errors import MetadataParseError
from imagegallery.infrastructure.utils import parse_metadata_datetime

METADATA_STEM = "_metadata"


def _load_toml(path: Path) -> Any:
    with path.open("rb") as f:
        return tomllib.load(f)


def _load_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


# Priority order: the first existing file is used.
METADATA_PARSERS: list[tuple[str, Callable[[Path], Any]]] = [
    ("toml", _load_toml),
    ("json", _load_json),
]


class MetadataRepository:
    """Load gallery metadata files."""

    def __init__(self, parsers: list[tuple[str, Callable[[Path], Any]]] | None = None) -> None:
        self._parsers = parsers or METADATA_PARSERS

    def find(self, gallery_dir: str | Path) -> tuple[Path, Callable[[Path], Any]] | None:
        """Return the metadata file to use in `gallery_dir` and its parser."""
        for ext, parser in self._parsers:
            path = Path(gallery_dir) / f"{METADATA_STEM}.{ext}"
            if path.is_file():
                return path, parser
        return None

    def load(self, gallery_dir: str | Path) -> dict[str, Any] | None:
        """Return the metadata of `gallery_dir`, or None when it has no metadata file.

        Raises:
            MetadataParseError: when the file is malformed, is not a mapping,
                or has an unparsable `datetime`.
        """
        found = self.find(gallery_dir)
        if found is None:
            return None
        path, parser = found
        logger.debug("Loading gallery metadata from {}", path)

        try:
            raw = parser(path)
        except (OSError, ValueError, tomllib.TOMLDecodeError) as ex:
            raise MetadataParseError(path, ex) from ex
        if not isinstance(raw, dict):
            raise MetadataParseError(path, ValueError("top level must be a table/object"))

        metadata = dict(raw)
        if "datetime" in metadata:
            try:
                metadata["datetime"] = parse_metadata_datetime(metadata["datetime"])
            except (ValueError, TypeError) as ex:
                raise MetadataParseError(path, ex) from ex
        return metadata
