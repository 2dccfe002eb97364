"""
Environment-driven configuration and logging setup.
"""
import logging
import os
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from progress_engine.constants import (
    DEFAULT_DATABASE_URL,
    DEFAULT_LOG_DIRECTORY_PROD,
    DEFAULT_LOG_DIRECTORY_DEV,
    DEFAULT_LOG_FILE,
    DEFAULT_LOG_LEVEL,
)

logger = logging.getLogger("progress_engine.config")


def get_database_url() -> str:
    return os.getenv("PROGRESS_ENGINE_DATABASE_URL", DEFAULT_DATABASE_URL)


def get_local_timezone() -> Optional[ZoneInfo]:
    """
    Get the timezone used to turn timestamps into calendar dates.

    Returns:
        ZoneInfo for PROGRESS_ENGINE_TIMEZONE, or None to use the system local time
    """
    name = os.getenv("PROGRESS_ENGINE_TIMEZONE", "").strip()
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, falling back to system local time")
        return None


def configure_logging(level: Optional[str] = None) -> Path:
    """
    Configure root logging with a file handler and a console handler.

    Falls back to a local log directory when the configured one is not writable.

    Returns:
        Path of the log file
    """
    log_dir = os.getenv("PROGRESS_ENGINE_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
    log_file = os.getenv("PROGRESS_ENGINE_LOG_FILE", DEFAULT_LOG_FILE)
    level_name = (level or os.getenv("PROGRESS_ENGINE_LOG_LEVEL", DEFAULT_LOG_LEVEL)).upper()

    try:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_path = Path(log_dir) / log_file
        file_handler = logging.FileHandler(log_path)
    except PermissionError:
        log_dir = DEFAULT_LOG_DIRECTORY_DEV
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_path = Path(log_dir) / log_file
        file_handler = logging.FileHandler(log_path)

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            file_handler,
            logging.StreamHandler()
        ]
    )
    logging.getLogger("progress_engine").info(f"Progress engine logging to: {log_path}")
    return log_path
