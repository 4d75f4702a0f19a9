"""
Logging setup for the listings service.

Every module logs through the root logger configured here:
- Rotating file log (LOG_FILE, LOG_MAX_SIZE bytes, LOG_BACKUP_COUNT backups)
- Console output when DEBUG is on or USE_JOURNALD=true
- Line format: {timestamp} - {level} - {logger} - {message}

Under systemd, set USE_JOURNALD=true; journald stamps its own time, so the
console format drops the timestamp.
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from now_screening.config import settings


# logging.py lives in now_screening/utils/
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
JOURNALD_FORMAT = "%(levelname)s - %(name)s - %(message)s"


def _resolve_log_file() -> Path:
    log_file = Path(settings.LOG_FILE)
    if not log_file.is_absolute():
        log_file = PROJECT_ROOT / log_file
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return log_file


def _resolve_level() -> int:
    level = getattr(logging, settings.LOG_LEVEL, None)
    if not isinstance(level, int):
        # Logging is not configured yet, so print instead
        print(
            f"WARNING: Invalid LOG_LEVEL '{settings.LOG_LEVEL}'. "
            f"Valid levels: DEBUG, INFO, WARNING, ERROR, CRITICAL. "
            f"Falling back to INFO."
        )
        return logging.INFO
    return level


def setup_logging() -> None:
    """
    Configure the root logger with a rotating file handler.

    A console handler is added when DEBUG is enabled or USE_JOURNALD is set.
    Calling this twice replaces the handlers instead of duplicating them.

    Example line:
        2026-10-19 08:00:01 - INFO - now_screening.services.orchestrator - Cache hit for cuttack (12 movies)
    """
    log_file = _resolve_log_file()
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(_resolve_level())
    root_logger.handlers.clear()

    file_handler = RotatingFileHandler(
        filename=str(log_file),
        maxBytes=settings.LOG_MAX_SIZE,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)

    use_journald = os.environ.get("USE_JOURNALD", "").lower() in ("true", "1", "yes")
    if settings.DEBUG or use_journald:
        console_handler = logging.StreamHandler(sys.stdout)
        if use_journald:
            console_handler.setFormatter(logging.Formatter(JOURNALD_FORMAT))
        else:
            console_handler.setFormatter(formatter)
        console_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(console_handler)

    root_logger.info(
        f"Logging initialized. Level: {settings.LOG_LEVEL}, File: {log_file}, "
        f"Max size: {settings.LOG_MAX_SIZE} bytes, Backups: {settings.LOG_BACKUP_COUNT}"
    )


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module (pass __name__)."""
    return logging.getLogger(name)
