"""Configuration settings for cortado

This module centralizes all configuration settings including:
- Working directory and log locations
- Segment length used to plan cut points
- ffmpeg/ffprobe binaries and the engine timeout
- Fixed file names used inside the engine workspace

User-configurable values are read from environment variables; the rest
are internal constants used throughout the pipeline.
"""

import os
from pathlib import Path

# Working root directory in /tmp
WORKING_ROOT = Path(os.environ.get("CORTADO_WORKDIR", "/tmp/cortado"))

# Engine storage: input and output clips live here during a run
ENGINE_DIR = WORKING_ROOT / "engine"

# LOG_DIR: user definable with default of "$HOME/cortado_logs"
LOG_DIR = Path(os.environ.get("CORTADO_LOG_DIR", str(Path.home() / "cortado_logs")))

# Segmentation settings
SEGMENT_LENGTH = int(os.environ.get("CORTADO_SEGMENT_LENGTH", "60"))  # seconds per clip

# Engine binaries
FFMPEG_BIN = os.environ.get("CORTADO_FFMPEG", "ffmpeg")
FFPROBE_BIN = os.environ.get("CORTADO_FFPROBE", "ffprobe")

# Engine timeout in seconds; unset means the engine call is unbounded
_timeout = os.environ.get("CORTADO_ENGINE_TIMEOUT")
ENGINE_TIMEOUT = float(_timeout) if _timeout else None

# Engine file names (single job, so fixed names never collide)
INPUT_NAME = "input.mp4"
OUTPUT_TEMPLATE = "clipe_%03d.mp4"

# Prefix of the suggested download name: cortado_<length>s_<clip>
OUTPUT_PREFIX = "cortado"

# Logging configuration
LOG_LEVEL = "INFO"  # Default logging level; valid values: DEBUG, INFO, WARNING, ERROR, CRITICAL
