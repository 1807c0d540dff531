"""Engine interface.

The pipeline only talks to the engine through this interface: a small
file store keyed by name, a single exec call, and two event streams.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Sequence

LOG_EVENT = "log"
PROGRESS_EVENT = "progress"


@dataclass(frozen=True)
class EngineResources:
    """Handles needed to start an engine.

    Attributes:
        ffmpeg_path: Resolved ffmpeg executable
        workspace: Directory backing the engine file store
    """
    ffmpeg_path: str
    workspace: Path


class Engine(ABC):
    """Interface of the external processing engine."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Callable]] = {}

    def on(self, event: str, handler: Callable) -> None:
        """Register a handler for "log" (str) or "progress" (float 0..1) events."""
        if event not in (LOG_EVENT, PROGRESS_EVENT):
            raise ValueError(f"Unknown engine event: {event}")
        self._handlers.setdefault(event, []).append(handler)

    def _emit(self, event: str, payload) -> None:
        for handler in self._handlers.get(event, []):
            handler(payload)

    @abstractmethod
    async def load(self, resources: EngineResources) -> None:
        """Start the engine.

        Raises:
            Exception: Any failure; the invoker reports it as EngineLoadError
        """

    @abstractmethod
    async def write_file(self, name: str, data: bytes) -> None:
        """Store a file in engine storage."""

    @abstractmethod
    async def read_file(self, name: str) -> bytes:
        """Read a file from engine storage.

        Raises:
            FileNotFoundError: If no file of that name exists
            OSError: On any other storage failure
        """

    @abstractmethod
    async def list_files(self) -> List[str]:
        """Names of all files currently in engine storage."""

    @abstractmethod
    async def delete_file(self, name: str) -> None:
        """Remove a file from engine storage."""

    @abstractmethod
    async def exec(self, argv: Sequence[str]) -> None:
        """Run one command to completion.

        Raises:
            Exception: When the engine reports failure
        """
