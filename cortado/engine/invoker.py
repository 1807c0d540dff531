"""Engine lifecycle and execution

Responsibilities:
  - Initialize the engine once, serializing concurrent attempts
  - Run one command at a time and forward progress as integer percents
  - Translate engine storage failures into EngineIOError
"""

import asyncio
import logging
import math
from enum import Enum, auto
from typing import Callable, List, Optional

from ..command_builders import EngineCommand, output_pattern
from ..config import ENGINE_TIMEOUT
from ..exceptions import (
    BusyError, EngineExecutionError, EngineIOError, EngineIOErrorKind,
    EngineLoadError, EngineNotReadyError, error_message
)
from .base import Engine, EngineResources, LOG_EVENT, PROGRESS_EVENT
from .local import load_engine_resources

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class EngineLifecycle(Enum):
    UNINITIALIZED = auto()
    INITIALIZING = auto()
    READY = auto()
    FAILED = auto()


def _io_error(action: str, name: str, error: Exception) -> EngineIOError:
    kind = EngineIOErrorKind.NOT_FOUND if isinstance(error, FileNotFoundError) else EngineIOErrorKind.OTHER
    return EngineIOError(f"Could not {action} {name}: {error_message(error)}", kind=kind, name=name)


class EngineInvoker:
    """
    Owns the engine for the lifetime of the process.

    Attributes:
        timeout: Upper bound in seconds for one run, or None for no bound
    """

    def __init__(
        self,
        engine: Engine,
        resource_loader: Callable[[], EngineResources] = load_engine_resources,
        timeout: Optional[float] = ENGINE_TIMEOUT
    ):
        self._engine = engine
        self._resource_loader = resource_loader
        self.timeout = timeout
        self._lifecycle = EngineLifecycle.UNINITIALIZED
        self._init_lock = asyncio.Lock()
        self._running = False
        self._on_progress: Optional[ProgressCallback] = None
        engine.on(LOG_EVENT, self._handle_log)
        engine.on(PROGRESS_EVENT, self._handle_progress)

    @property
    def lifecycle(self) -> EngineLifecycle:
        return self._lifecycle

    @property
    def is_ready(self) -> bool:
        return self._lifecycle is EngineLifecycle.READY

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self) -> EngineLifecycle:
        """
        Load the engine if it is not loaded yet.

        Returns:
            EngineLifecycle.READY

        Raises:
            EngineLoadError: If the engine resources cannot be found or started
        """
        if self.is_ready:
            return self._lifecycle
        async with self._init_lock:
            # Another caller may have finished loading while we waited
            if self.is_ready:
                return self._lifecycle
            self._lifecycle = EngineLifecycle.INITIALIZING
            logger.info("Loading processing engine...")
            try:
                resources = self._resource_loader()
                await self._engine.load(resources)
            except EngineLoadError as e:
                self._lifecycle = EngineLifecycle.FAILED
                logger.error("%s", e.message)
                raise
            except Exception as e:
                self._lifecycle = EngineLifecycle.FAILED
                logger.error("Engine load failed: %s", error_message(e))
                raise EngineLoadError(error_message(e)) from e
            self._lifecycle = EngineLifecycle.READY
            logger.info("Processing engine ready")
        return self._lifecycle

    def _require_ready(self) -> None:
        if not self.is_ready:
            raise EngineNotReadyError()

    async def run(self, command: EngineCommand, on_progress: Optional[ProgressCallback] = None) -> None:
        """
        Execute a command on the engine.

        Args:
            command: ffmpeg arguments built from a SegmentPlan
            on_progress: Called with percents in [0, 100] while the run is active

        Raises:
            EngineNotReadyError: If initialize() has not succeeded
            BusyError: If another run is in flight (the engine is not invoked)
            EngineExecutionError: If the engine fails or times out
        """
        self._require_ready()
        if self._running:
            raise BusyError("Engine is already running a command", module="engine")

        self._running = True
        self._on_progress = on_progress
        try:
            await asyncio.wait_for(self._engine.exec(list(command.argv)), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise EngineExecutionError(f"Engine did not finish within {self.timeout:g}s") from e
        except Exception as e:
            raise EngineExecutionError(error_message(e)) from e
        finally:
            self._running = False
            self._on_progress = None

    def _handle_progress(self, ratio: float) -> None:
        callback = self._on_progress
        if not self._running or callback is None:
            logger.debug("Dropping engine progress outside of a run")
            return
        percent = min(100, max(0, math.floor(ratio * 100)))
        callback(percent)

    def _handle_log(self, message: str) -> None:
        logger.debug("[engine] %s", message)

    async def write_input(self, name: str, data: bytes) -> None:
        self._require_ready()
        try:
            await self._engine.write_file(name, data)
        except (OSError, ValueError) as e:
            raise _io_error("write", name, e) from e

    async def read_output(self, name: str) -> bytes:
        self._require_ready()
        try:
            return await self._engine.read_file(name)
        except (OSError, ValueError) as e:
            raise _io_error("read", name, e) from e

    async def _delete(self, name: str) -> None:
        self._require_ready()
        try:
            await self._engine.delete_file(name)
        except Exception as e:
            # Deletion only runs during cleanup, where every failure is non-fatal
            raise _io_error("delete", name, e) from e

    async def list_outputs(self, output_template: str) -> List[str]:
        """Names in engine storage that match the clip template"""
        self._require_ready()
        try:
            names = await self._engine.list_files()
        except Exception as e:
            raise _io_error("list", "engine storage", e) from e
        pattern = output_pattern(output_template)
        return [name for name in names if pattern.match(name)]

    async def delete_input(self, name: str) -> None:
        await self._delete(name)

    async def delete_output(self, name: str) -> None:
        await self._delete(name)
