"""Centralized logging configuration for cortado"""

import logging
from typing import Optional
from pathlib import Path

from rich.logging import RichHandler

from .config import LOG_DIR, LOG_LEVEL
from .utils import get_timestamp


def configure_logging(log_level: Optional[str] = None, file_logging: bool = True,
                      log_dir: Path = LOG_DIR) -> Optional[Path]:
    """Central logging configuration for all modules

    Returns the log file path when file logging is enabled.
    """
    level = (log_level or LOG_LEVEL).upper()
    logger = logging.getLogger("cortado")
    logger.setLevel(logging._nameToLevel.get(level, logging.INFO))

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    # Rich console handler
    console_handler = RichHandler(show_path=False, rich_tracebacks=True)
    console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(console_handler)

    log_file = None
    if file_logging:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"cortado_{get_timestamp()}.log"
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))
        logger.addHandler(file_handler)

    # Capture warnings
    logging.captureWarnings(True)

    logger.info("Started new logging session")
    if log_file:
        logger.info("Log file: %s", log_file)
    return log_file
