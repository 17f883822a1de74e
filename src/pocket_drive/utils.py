"""Utility functions for pocket-drive."""

import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger


LOG_FILE_NAME = "pocket-drive.log"


def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = False,
    log_to_stdout: bool = False,
    log_dir: Optional[Path] = None,
) -> None:  # pragma: no cover
    """Configure loguru sinks for the current process.

    Args:
        log_level: Minimum level for all sinks
        log_to_file: Write a rotating log file under log_dir (default ~/.pocket-drive)
        log_to_stdout: Write to stderr, for containerised deployments
        log_dir: Directory for the log file
    """
    # Start from a clean slate so repeated calls don't duplicate sinks
    logger.remove()

    # Tests capture logs through pytest; keep output quiet there
    if os.getenv("POCKET_DRIVE_ENV", "").lower() == "test":
        logger.add(sys.stderr, level="WARNING")
        return

    if log_to_file:
        directory = log_dir or Path(os.getenv("HOME", Path.home())) / ".pocket-drive"
        directory.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(directory / LOG_FILE_NAME),
            level=log_level,
            rotation="10 MB",
            retention="10 days",
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )

    if log_to_stdout:
        logger.add(sys.stderr, level=log_level, backtrace=True, diagnose=False)

    # Noisy third-party loggers routed through stdlib logging
    import logging

    for name in ("sqlalchemy.engine", "aiosqlite", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)


def ensure_timezone_aware(dt: datetime) -> datetime:
    """Return dt with tzinfo, assuming local time for naive values.

    SQLite drops timezone information on round trips, so values read back
    from the database may be naive even though they were written aware.
    """
    if dt.tzinfo is None:
        return dt.astimezone()
    return dt


def normalize_parent_id(parent_id: Optional[str]) -> Optional[str]:
    """Map the client-facing "root" marker and empty values to None."""
    if parent_id is None:
        return None
    parent_id = parent_id.strip()
    if not parent_id or parent_id == "root":
        return None
    return parent_id
