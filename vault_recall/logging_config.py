"""Logging configuration with console and rotating file handlers"""
import glob
import logging
import re
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Session log files kept on disk (older ones are deleted on startup)
SESSION_LOG_RETENTION = 5


def setup_logging(
    log_file: str = "logs/vault-recall.log",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    vault_name: Optional[str] = None,
):
    """
    Configure logging with two destinations:
    - Console: Brief logs (INFO by default)
    - File: Detailed logs (DEBUG by default) with rotation

    Rotation policy:
    - New log file on each service start (timestamp-based naming)
    - Keep last 5 log files (auto-cleanup on startup)
    - Auto-rotate when file reaches 10MB

    Args:
        log_file: Base path to log file (relative to working directory)
        console_level: Console logging level (INFO = brief)
        file_level: File logging level (DEBUG = verbose)
        vault_name: Vault the service runs for; session logs of different
            vaults get separate names and retention (e.g. vault-recall-notes_*.log)

    Returns:
        Path of this session's log file
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    stem = log_path.stem
    if vault_name:
        stem = f"{stem}-{_slug(vault_name)}"

    # Cleanup old session logs - keep only the newest ones
    log_pattern = str(log_path.parent / f"{stem}_*.log")
    existing_logs = sorted(glob.glob(log_pattern), reverse=True)  # Newest first
    for old_log in existing_logs[SESSION_LOG_RETENTION - 1:]:
        try:
            Path(old_log).unlink()
        except OSError:
            pass  # Another process may hold or have removed it

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    session_log = log_path.parent / f"{stem}_{timestamp}.log"

    # Root logger captures everything, handlers filter
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    # Console handler - brief output
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))

    # Rotating file handler - detailed output
    file_handler = RotatingFileHandler(
        session_log,
        mode='a',
        maxBytes=10*1024*1024,  # 10MB
        backupCount=10,
        encoding='utf-8'
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # Suppress noisy third-party loggers in console (but keep in file)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.info(f"Logging configured: console={logging.getLevelName(console_level)}, file={session_log} ({logging.getLevelName(file_level)})")

    return session_log


def _slug(name: str) -> str:
    """File-name safe form of a vault name ("My Notes" -> "my-notes")"""
    return re.sub(r'[^a-z0-9]+', '-', name.lower()).strip('-') or "vault"
