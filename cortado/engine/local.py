"""Local ffmpeg engine

Responsibilities:
  - Resolve the ffmpeg binary and prepare a private workspace
  - Store engine files by name inside the workspace
  - Run ffmpeg with -progress pipe:1 and turn its output into log/progress events
"""

import asyncio
import contextlib
import logging
import re
from collections import deque
from pathlib import Path
from typing import List, Optional, Sequence

from ..config import ENGINE_DIR, FFMPEG_BIN
from ..exceptions import EngineLoadError, ProcessError
from ..utils import find_executable, parse_clock
from .base import Engine, EngineResources, LOG_EVENT, PROGRESS_EVENT

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"Duration:\s*(\d+:\d{2}:\d{2}(?:\.\d+)?)")

# Seconds; far beyond any real input
WHOLE_INPUT_SEGMENT_TIME = "1000000000"


def load_engine_resources(ffmpeg_cmd: str = FFMPEG_BIN, workspace: Path = ENGINE_DIR) -> EngineResources:
    """Locate the ffmpeg binary and pick the engine workspace"""
    path = find_executable(ffmpeg_cmd)
    if path is None:
        raise EngineLoadError(f"ffmpeg binary not found: {ffmpeg_cmd}")
    return EngineResources(ffmpeg_path=path, workspace=Path(workspace))


def prepare_argv(argv: Sequence[str]) -> List[str]:
    """
    Replace an empty -segment_times option before launching ffmpeg.

    ffmpeg rejects an empty time list, and without any bound the segment
    muxer falls back to 2 second segments. A single-clip plan therefore
    gets a -segment_time longer than any input, so one clip covers it all.
    """
    args = list(argv)
    prepared = []
    i = 0
    while i < len(args):
        if args[i] == "-segment_times" and i + 1 < len(args) and args[i + 1] == "":
            prepared.extend(["-segment_time", WHOLE_INPUT_SEGMENT_TIME])
            i += 2
            continue
        prepared.append(args[i])
        i += 1
    return prepared


class _ProgressTracker:
    """Combines the input duration (stderr) with out_time (stdout)"""

    def __init__(self) -> None:
        self.total: Optional[float] = None

    def ratio(self, current: float) -> Optional[float]:
        if not self.total:
            return None
        return min(max(current / self.total, 0.0), 1.0)


class FFmpegEngine(Engine):
    """Engine backed by the ffmpeg executable and a working directory"""

    def __init__(self, log_tail: int = 20) -> None:
        super().__init__()
        self._resources: Optional[EngineResources] = None
        self._log_tail = log_tail

    @property
    def workspace(self) -> Path:
        if self._resources is None:
            raise RuntimeError("FFmpegEngine used before load()")
        return self._resources.workspace

    def _path(self, name: str) -> Path:
        if not name or name in (".", "..") or Path(name).name != name:
            raise ValueError(f"Invalid engine file name: {name!r}")
        return self.workspace / name

    async def load(self, resources: EngineResources) -> None:
        process = await asyncio.create_subprocess_exec(
            resources.ffmpeg_path, "-version",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            raise ProcessError(
                f"ffmpeg -version exited with code {process.returncode}",
                exit_code=process.returncode,
                output=stderr.decode(errors="replace"),
                module="engine"
            )
        lines = stdout.decode(errors="replace").splitlines()
        version = lines[0] if lines else "ffmpeg (unknown version)"
        resources.workspace.mkdir(parents=True, exist_ok=True)
        self._resources = resources
        self._emit(LOG_EVENT, version)
        logger.info("Loaded %s (workspace %s)", version, resources.workspace)

    async def write_file(self, name: str, data: bytes) -> None:
        path = self._path(name)
        await asyncio.get_running_loop().run_in_executor(None, path.write_bytes, data)

    async def read_file(self, name: str) -> bytes:
        path = self._path(name)
        return await asyncio.get_running_loop().run_in_executor(None, path.read_bytes)

    async def delete_file(self, name: str) -> None:
        path = self._path(name)
        await asyncio.get_running_loop().run_in_executor(None, path.unlink)

    async def list_files(self) -> List[str]:
        workspace = self.workspace
        return sorted(p.name for p in workspace.iterdir() if p.is_file())

    async def _read_progress(self, stream: asyncio.StreamReader, tracker: _ProgressTracker) -> None:
        async for raw in stream:
            line = raw.decode(errors="replace").strip()
            if line.startswith("out_time="):
                current = parse_clock(line.split("=", 1)[1])
                ratio = tracker.ratio(current) if current is not None else None
                if ratio is not None:
                    self._emit(PROGRESS_EVENT, ratio)
            elif line == "progress=end":
                self._emit(PROGRESS_EVENT, 1.0)

    async def _read_log(self, stream: asyncio.StreamReader, tracker: _ProgressTracker, tail: deque) -> None:
        async for raw in stream:
            line = raw.decode(errors="replace").rstrip()
            if not line:
                continue
            if tracker.total is None:
                match = _DURATION_RE.search(line)
                if match:
                    tracker.total = parse_clock(match.group(1))
            tail.append(line)
            self._emit(LOG_EVENT, line)

    async def exec(self, argv: Sequence[str]) -> None:
        workspace = self.workspace
        cmd = [
            self._resources.ffmpeg_path,
            "-hide_banner", "-nostdin", "-nostats", "-y",
            "-progress", "pipe:1",
            *prepare_argv(argv),
        ]
        logger.info("Running ffmpeg command:\n%s", " \\\n    ".join(cmd))
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(workspace),
        )
        tracker = _ProgressTracker()
        tail = deque(maxlen=self._log_tail)
        try:
            await asyncio.gather(
                self._read_progress(process.stdout, tracker),
                self._read_log(process.stderr, tracker, tail),
            )
            returncode = await process.wait()
        finally:
            # Cancelled, or a reader/event handler failed
            if process.returncode is None:
                logger.warning("Killing ffmpeg (pid %s)", process.pid)
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()

        if returncode != 0:
            message = tail[-1] if tail else f"ffmpeg exited with code {returncode}"
            raise ProcessError(message, exit_code=returncode, output="\n".join(tail), module="engine")
        logger.debug("ffmpeg finished successfully")
