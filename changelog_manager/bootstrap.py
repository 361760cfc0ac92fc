from __future__ import annotations

from dotenv import load_dotenv
from pathlib import Path
from typing import Optional
from changelog_manager.utils.logger import config as configure_logger, add_file_sink
from loguru import logger


def init(project_root: Path | None = None, log_level: Optional[str] = None) -> None:
    """Initialize environment and logging early.

    - Loads .env from the project root (falling back to the usual search)
    - Configures loguru (``log_level`` beats LOG_LEVEL)
    - Mirrors logs to CHANGELOG_LOG_FILE when set
    """
    env_file = (project_root / ".env") if project_root else None
    if env_file is not None and env_file.is_file():
        load_dotenv(env_file)
    else:
        load_dotenv()
    configure_logger(log_level)
    log_file = add_file_sink(level=log_level)
    logger.debug(
        f"Bootstrap complete (root={project_root or Path.cwd()}, log_file={log_file or '-'})"
    )
