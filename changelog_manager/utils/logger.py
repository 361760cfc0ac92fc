import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def resolve_level(level: Optional[str] = None) -> str:
    """Explicit level, else LOG_LEVEL, else INFO."""
    return (level or os.environ.get("LOG_LEVEL") or "INFO").strip().upper()


def config(level: Optional[str] = None) -> None:
    """
    Route the global Loguru logger to a colorized stdout sink. Replaces any
    sinks added earlier, so call it once from the entry point.
    """
    logger.remove()
    logger.add(sys.stdout, level=resolve_level(level), colorize=True, format=CONSOLE_FORMAT)


def add_file_sink(log_path: Optional[str] = None, level: Optional[str] = None) -> Optional[Path]:
    """
    Mirror log output into a file when CHANGELOG_LOG_FILE (or `log_path`) is
    set. The containing directory is created if necessary. Returns the file
    path, or None when no file sink was added.
    """
    target = log_path or os.environ.get("CHANGELOG_LOG_FILE")
    if not target:
        return None
    path = Path(target).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(path, level=resolve_level(level), format=FILE_FORMAT)
    return path
