"""Job status model.

This module defines the stages of a segmentation job and the immutable
state object published on every transition.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple

from .collector import Artifact


class JobStage(Enum):
    """Processing stages for status tracking."""
    IDLE = auto()
    PROBING_DURATION = auto()
    LOADING_ENGINE = auto()
    PROCESSING = auto()
    COLLECTING_ARTIFACTS = auto()
    DONE = auto()
    FAILED = auto()


TERMINAL_STAGES = frozenset({JobStage.DONE, JobStage.FAILED})
IDLE_STAGES = frozenset({JobStage.IDLE}) | TERMINAL_STAGES


@dataclass(frozen=True)
class JobState:
    """Current job status.

    Attributes:
        stage: Current processing stage
        message: Status line shown to the user
        progress: Engine progress percentage (0-100), used while PROCESSING
        artifacts: Collected clips, only set in DONE
        reason: Failure description, only set in FAILED
        expected_clip_count: Clips the plan asked for, once known
    """
    stage: JobStage = JobStage.IDLE
    message: str = ""
    progress: int = 0
    artifacts: Tuple[Artifact, ...] = ()
    reason: Optional[str] = None
    expected_clip_count: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.progress <= 100:
            raise ValueError("Progress must be between 0 and 100")

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    @property
    def is_busy(self) -> bool:
        return self.stage not in IDLE_STAGES

    @property
    def available_artifacts(self) -> Tuple[Artifact, ...]:
        return tuple(a for a in self.artifacts if a.ok)

    @property
    def missing_count(self) -> int:
        return self.expected_clip_count - len(self.available_artifacts)
