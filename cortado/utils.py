"""Utility functions for the cortado pipeline"""

import logging
import math
import re
import shutil
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)

_CLOCK_RE = re.compile(r"^(\d+):(\d{1,2}):(\d{1,2}(?:\.\d+)?)$")


def get_timestamp() -> str:
    """Get current timestamp in YYYYMMDD_HHMMSS format"""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def format_size(size: int) -> str:
    """Format file size for display"""
    for unit in ['B', 'KiB', 'MiB', 'GiB', 'TiB']:
        if size < 1024:
            return f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}TiB"


def format_seconds(value: float) -> str:
    """Render a length in seconds without a trailing '.0' for whole values"""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def parse_clock(value: str) -> Optional[float]:
    """
    Parse an ffmpeg HH:MM:SS.xxx clock string into seconds.

    Returns None for values ffmpeg prints when the time is unknown
    ("N/A") or that are not in clock format.
    """
    match = _CLOCK_RE.match(value.strip())
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    total = int(hours) * 3600 + int(minutes) * 60 + float(seconds)
    return total if math.isfinite(total) else None


def find_executable(name: str) -> Optional[str]:
    """Resolve a required binary on PATH"""
    path = shutil.which(name)
    if path is None:
        logger.error("Required dependency not found: %s", name)
    return path
