from __future__ import annotations

import logging
import os
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Union

from .runtime_data import get_runtime_paths

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILENAME = "sustainify.log"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _is_stale(path: Path, max_age_hours: int) -> bool:
    if max_age_hours <= 0 or not path.is_file():
        return False
    age_seconds = time.time() - path.stat().st_mtime
    return age_seconds >= max_age_hours * 3600


def build_file_handler(log_path: Path) -> RotatingFileHandler:
    """Size-rotated handler that also rolls a log left over from an old session."""
    max_bytes = max(0, _env_int("SUSTAINIFY_LOG_MAX_BYTES", 5 * 1024 * 1024))
    max_age_hours = _env_int("SUSTAINIFY_LOG_MAX_AGE_HOURS", 24)
    backup_count = max(0, _env_int("SUSTAINIFY_LOG_MAX_FILES", 5))

    stale = _is_stale(log_path, max_age_hours)
    handler = RotatingFileHandler(
        log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    if stale and backup_count > 0:
        handler.doRollover()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(logs_dir: Union[Path, None] = None) -> Path:
    """Attach the sustainify file handler to the package logger once."""
    if logs_dir is None:
        logs_dir = get_runtime_paths().logs_dir
    log_path = logs_dir / LOG_FILENAME

    logger = logging.getLogger("sustainify")
    level = os.environ.get("SUSTAINIFY_LOG_LEVEL", "INFO").upper()
    logger.setLevel(level)
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_path.resolve():
            return log_path

    logs_dir.mkdir(parents=True, exist_ok=True)
    logger.addHandler(build_file_handler(log_path))
    return log_path
