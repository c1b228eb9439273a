"""Logging initialization utilities using loguru."""

from __future__ import annotations

from pathlib import Path
import sys
import threading

from loguru import logger

LOG_FORMAT = "<level>{level: <8}</level> imagegallery: {message}"

_seen_messages: set[str] = set()
_seen_lock = threading.Lock()


def init_logging(log_dir: str | Path | None = None, level: str = "INFO") -> None:
    """Log to stderr and, when `log_dir` is given, to a rotating file there."""
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)
    if log_dir is None:
        return

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    logger.add(
        str(log_path / "imagegallery_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=level,
        format=LOG_FORMAT,
    )


def log_once(level: str, message: str) -> bool:
    """Log `message` only the first time its text is seen; return True if logged."""
    with _seen_lock:
        if message in _seen_messages:
            return False
        _seen_messages.add(message)
    logger.log(level, message)
    return True


def reset_log_once() -> None:
    """Forget every message seen by `log_once`."""
    with _seen_lock:
        _seen_messages.clear()
