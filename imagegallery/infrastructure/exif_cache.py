"""Memoizing EXIF cache with single-flight semantics and optional disk persistence.

One instance is created per build and injected where EXIF data is needed.
Entries are keyed by source path and never invalidated during a build: the
source images are assumed not to change while a build runs.
"""

from __future__ import annotations

from collections.abc import Callable
import hashlib
import json
from pathlib import Path
import threading
from typing import Any, TypeVar

from loguru import logger

T = TypeVar("T")


def _compute_cache_key(key: str) -> str:
    """Compute a stable file name for `key`."""
    return hashlib.sha1(key.encode("utf-8", errors="ignore")).hexdigest()


def _ensure_dir(p: Path) -> None:
    """Create directory `p` if missing (including parents)."""
    p.mkdir(parents=True, exist_ok=True)


class _Entry:
    """A value being computed or already computed by one owner thread."""

    def __init__(self) -> None:
        self.ready = threading.Event()
        self.value: Any = None
        self.error: BaseException | None = None

    def result(self) -> Any:
        self.ready.wait()
        if self.error is not None:
            raise self.error
        return self.value


class ExifCache:
    """Get-or-compute cache where each key is computed at most once.

    Concurrent callers asking for a key that is being computed wait for that
    computation instead of starting their own. A failed computation is not
    cached; its exception is raised to every waiting caller.

    When `cache_dir` is given, computed values (which must be JSON-safe) are
    also stored there, one file per key, and read back by later builds. The
    directory is created by the first save.
    """

    def __init__(self, cache_dir: str | Path | None = None) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}
        self._disk_path = Path(cache_dir) if cache_dir is not None else None
        self.computed = 0

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
        return entry is not None and entry.ready.is_set() and entry.error is None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        """Return the value cached for `key`, running `compute` if nobody has."""
        with self._lock:
            entry = self._entries.get(key)
            owner = entry is None
            if owner:
                entry = _Entry()
                self._entries[key] = entry
        if not owner:
            return entry.result()

        try:
            value = self._load_from_disk(key)
            if value is None:
                value = compute()
                with self._lock:
                    self.computed += 1
                self._save_to_disk(key, value)
        except BaseException as ex:
            with self._lock:
                self._entries.pop(key, None)
            entry.error = ex
            entry.ready.set()
            raise
        entry.value = value
        entry.ready.set()
        return value

    def clear(self) -> None:
        """Drop all memory and disk entries."""
        with self._lock:
            self._entries.clear()
        if self._disk_path is not None:
            for cached in self._disk_path.glob("*.json"):
                cached.unlink(missing_ok=True)

    def _disk_file(self, key: str) -> Path | None:
        if self._disk_path is None:
            return None
        return self._disk_path / f"{_compute_cache_key(key)}.json"

    def _load_from_disk(self, key: str) -> Any:
        disk_file = self._disk_file(key)
        if disk_file is None or not disk_file.exists():
            return None
        try:
            with disk_file.open("r", encoding="utf-8") as f:
                entry = json.load(f)
        except (OSError, ValueError) as ex:
            logger.debug("Ignoring unreadable EXIF cache entry {}: {}", disk_file, ex)
            return None
        if not isinstance(entry, dict) or entry.get("key") != key:
            return None
        return entry.get("value")

    def _save_to_disk(self, key: str, value: Any) -> None:
        disk_file = self._disk_file(key)
        if disk_file is None:
            return
        try:
            _ensure_dir(disk_file.parent)
            with disk_file.open("w", encoding="utf-8") as f:
                json.dump({"key": key, "value": value}, f)
        except (OSError, TypeError) as ex:
            logger.debug("Save EXIF cache entry failed for {}: {}", key, ex)
