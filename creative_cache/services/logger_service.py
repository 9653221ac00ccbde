"""Logging configuration and utilities."""

import logging
import time
from contextlib import contextmanager
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Generator

from rich.console import Console
from rich.logging import RichHandler

from creative_cache.config import settings

console = Console()

LOG_FILE_PREFIX = "creative_cache_"


def setup_logging(
    verbose: bool = False,
    log_to_file: bool = True,
    log_dir: Path | None = None,
) -> None:
    """
    Configure logging for the application.

    Args:
        verbose: Enable verbose (DEBUG) logging
        log_to_file: Enable logging to file with rotation
        log_dir: Directory for log files (default: settings.log_dir)

    Logging modes:
        - Simple (default): INFO level, console only
        - Verbose: DEBUG level, console with timestamps and paths
    """
    log_level = logging.DEBUG if verbose else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []  # Clear existing handlers

    # Console handler with Rich formatting
    console_handler = RichHandler(
        rich_tracebacks=True,
        console=console,
        show_time=verbose,
        show_path=verbose,
        markup=False,
    )
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    # File handler with rotation (only if enabled)
    if log_to_file and settings.log_to_file:
        directory = Path(log_dir or settings.log_dir)
        directory.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = directory / f"{LOG_FILE_PREFIX}{timestamp}.log"

        # Rotating file handler (max 10MB, keep 5 backups)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)  # Always DEBUG in file
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)

        logging.getLogger(__name__).info(f"Logging to file: {log_file}")

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    mode = "VERBOSE" if verbose else "SIMPLE"
    logging.getLogger(__name__).debug(
        f"Logging initialized - Mode: {mode}, Level: {logging.getLevelName(log_level)}"
    )


@contextmanager
def log_performance(operation: str, logger: logging.Logger | None = None) -> Generator[None, None, None]:
    """
    Context manager to log operation performance.

    Args:
        operation: Name of the operation being measured
        logger: Logger instance (uses this module's logger if None)

    Usage:
        with log_performance("Asset cleanup", logger):
            ...
    """
    logger = logger or logging.getLogger(__name__)
    start_time = time.perf_counter()

    logger.debug(f"[{operation}] Starting...")

    try:
        yield
    finally:
        elapsed = time.perf_counter() - start_time
        logger.info(f"[{operation}] Completed in {elapsed:.2f}s")


def cleanup_old_logs(max_age_days: int = 7, log_dir: Path | None = None) -> int:
    """
    Clean up log files older than max_age_days.

    Args:
        max_age_days: Maximum age of log files to keep
        log_dir: Directory to sweep (default: settings.log_dir)

    Returns:
        Number of files deleted
    """
    logger = logging.getLogger(__name__)
    directory = Path(log_dir or settings.log_dir)

    if not directory.exists():
        return 0

    cutoff_time = time.time() - (max_age_days * 24 * 60 * 60)
    deleted_count = 0

    for log_file in directory.glob(f"{LOG_FILE_PREFIX}*.log*"):
        if log_file.stat().st_mtime < cutoff_time:
            log_file.unlink()
            deleted_count += 1

    if deleted_count > 0:
        logger.debug(f"Cleaned up {deleted_count} old log files (>{max_age_days} days)")
    return deleted_count
