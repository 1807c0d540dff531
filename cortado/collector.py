"""Collection of produced clips

Responsibilities:
  - Read every expected clip from engine storage, in order
  - Record missing or unreadable clips per artifact instead of failing
  - Report a mismatch between expected and available clips
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .command_builders import clip_name
from .config import OUTPUT_TEMPLATE
from .engine.invoker import EngineInvoker
from .exceptions import EngineIOError
from .segmentation import SegmentPlan

logger = logging.getLogger(__name__)


class ArtifactOutcome(Enum):
    SUCCESS = "success"
    NOT_FOUND = "not-found"
    ERROR = "error"


@dataclass(frozen=True)
class Artifact:
    """
    One output clip.

    Attributes:
        index: 1-based clip number
        name: File name in engine storage (clipe_001.mp4, ...)
        data: Clip bytes, present only when retrieval succeeded
        outcome: Result of the retrieval
        error: Failure description for NOT_FOUND/ERROR
    """
    index: int
    name: str
    data: Optional[bytes] = field(default=None, repr=False)
    outcome: ArtifactOutcome = ArtifactOutcome.SUCCESS
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is ArtifactOutcome.SUCCESS and self.data is not None

    @property
    def size(self) -> int:
        return len(self.data) if self.data is not None else 0


class ArtifactCollector:
    """Reads the clips a segmentation run should have produced"""

    def __init__(self, invoker: EngineInvoker, output_template: str = OUTPUT_TEMPLATE):
        self._invoker = invoker
        self.output_template = output_template

    async def collect(self, plan: SegmentPlan) -> List[Artifact]:
        """
        Retrieve clips 1..expected_clip_count.

        Returns:
            One Artifact per expected clip, in index order. Per-clip storage
            errors are recorded on the artifact and never raised.
        """
        artifacts = []
        for index in range(1, plan.expected_clip_count + 1):
            name = clip_name(index, self.output_template)
            try:
                data = await self._invoker.read_output(name)
            except EngineIOError as e:
                outcome = ArtifactOutcome.NOT_FOUND if e.not_found else ArtifactOutcome.ERROR
                logger.warning("Clip %s not available (%s): %s", name, outcome.value, e.message)
                artifacts.append(Artifact(index=index, name=name, outcome=outcome, error=e.message))
                continue
            logger.debug("Collected %s (%d bytes)", name, len(data))
            artifacts.append(Artifact(index=index, name=name, data=data))

        available = sum(1 for a in artifacts if a.ok)
        if available != plan.expected_clip_count:
            logger.warning("Expected %d clips, %d available", plan.expected_clip_count, available)
        else:
            logger.info("Collected %d clips", available)
        return artifacts
