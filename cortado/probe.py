"""Duration probing

Responsibilities:
- Read the container duration of a MediaSource with ffprobe
- Fall back to stream durations when the container has none
- Release the temporary probe file on every path
"""

import asyncio
import logging
import math
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import ffmpeg

from .config import FFPROBE_BIN
from .exceptions import UnreadableMediaError
from .media import MediaSource

logger = logging.getLogger(__name__)


def _as_duration(value: Any) -> Optional[float]:
    try:
        duration = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(duration) or duration < 0:
        return None
    return duration


def extract_duration(info: Dict[str, Any]) -> float:
    """
    Get the duration from parsed ffprobe output.

    Uses format.duration first, then the longest stream duration.

    Raises:
        UnreadableMediaError: If no valid duration is present
    """
    duration = _as_duration(info.get("format", {}).get("duration"))
    if duration is not None:
        return duration

    stream_durations = [
        d for d in (_as_duration(s.get("duration")) for s in info.get("streams", []))
        if d is not None
    ]
    if stream_durations:
        logger.debug("Container has no duration, using stream duration")
        return max(stream_durations)

    raise UnreadableMediaError("No valid duration found in media metadata", module="probe")


class DurationProbe:
    """Extracts total duration from container metadata only"""

    def __init__(self, ffprobe_cmd: str = FFPROBE_BIN):
        self.ffprobe_cmd = ffprobe_cmd

    def probe_sync(self, source: MediaSource) -> float:
        fd, tmp_name = tempfile.mkstemp(prefix="cortado_probe_", suffix=source.suffix)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(source.data)
            try:
                info = ffmpeg.probe(tmp_name, cmd=self.ffprobe_cmd)
            except ffmpeg.Error as e:
                stderr = (e.stderr or b"").decode(errors="replace").strip()
                raise UnreadableMediaError(
                    f"Could not read video duration: {stderr or 'ffprobe failed'}",
                    module="probe"
                ) from e
            except OSError as e:
                raise UnreadableMediaError(f"Could not run ffprobe: {e}", module="probe") from e
            duration = extract_duration(info)
        finally:
            Path(tmp_name).unlink(missing_ok=True)
        logger.info("Probed %s: duration %.2fs", source.name, duration)
        return duration

    async def probe(self, source: MediaSource) -> float:
        """Probe duration without blocking the event loop"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.probe_sync, source)
