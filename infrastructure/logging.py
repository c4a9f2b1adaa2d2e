"""Logging initialization utilities using loguru."""

from __future__ import annotations

import os
from pathlib import Path
import subprocess

from loguru import logger

from infrastructure.settings import APP_DATA_DIR

_LOG_PATTERN = "vault_*.log"

# Directory of the sink installed by `init_logging`, used by the Help menu.
_active_log_dir: Path | None = None


def get_log_directory() -> Path:
    """Default log directory next to the vault store."""
    return APP_DATA_DIR / "logs"


def init_logging(log_dir: str | Path | None = None, level: str = "INFO") -> Path:
    """Install a rotating file sink and return the directory it writes to."""
    global _active_log_dir
    log_path = Path(log_dir) if log_dir else get_log_directory()
    log_path.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        str(log_path / "vault_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=level.upper(),
    )
    _active_log_dir = log_path
    return log_path


def find_latest_log_file(log_dir: str | Path | None = None) -> Path | None:
    """Most recently written log file, or None when there is none yet."""
    log_path = Path(log_dir) if log_dir else (_active_log_dir or get_log_directory())
    try:
        log_files = list(log_path.glob(_LOG_PATTERN))
        if not log_files:
            return None
        return max(log_files, key=lambda p: p.stat().st_mtime)
    except OSError:
        return None


def open_file_in_default_app(file_path: str | Path) -> bool:
    try:
        if os.name == "nt":
            os.startfile(str(file_path))  # type: ignore[attr-defined]
        else:
            subprocess.run(["xdg-open", str(file_path)], check=True)
        return True
    except (OSError, subprocess.CalledProcessError) as ex:
        logger.warning("Cannot open {}: {}", file_path, ex)
        return False


def open_latest_log() -> bool:
    """Open the current log file; False when nothing could be opened."""
    log_file = find_latest_log_file()
    if log_file is None:
        logger.info("No log file found to open")
        return False
    return open_file_in_default_app(log_file)
