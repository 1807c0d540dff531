"""Presentation of job status and clips.

This module turns collected artifacts into downloadable files and renders
job state changes. Exactly one of progress, done summary or error is shown
for any state.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from .collector import Artifact
from .config import OUTPUT_PREFIX
from .events import Event, EventType
from .formatting import print_clip, print_done, print_failure, print_progress, print_stage
from .pipeline import JobStateMachine
from .status import JobStage, JobState
from .utils import format_seconds, format_size

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArtifactLink:
    """A retrievable clip.

    Attributes:
        display_name: Label shown to the user
        data: Clip bytes
        filename: Suggested download name, cortado_<length>s_<clip>
    """
    display_name: str
    data: bytes = field(repr=False)
    filename: str


def suggested_filename(segment_length: float, clip: str) -> str:
    return f"{OUTPUT_PREFIX}_{format_seconds(segment_length)}s_{clip}"


def build_artifact_links(artifacts: Iterable[Artifact], segment_length: float) -> List[ArtifactLink]:
    """Links for every artifact that has bytes, in clip order"""
    return [
        ArtifactLink(
            display_name=f"Download {artifact.name}",
            data=artifact.data,
            filename=suggested_filename(segment_length, artifact.name),
        )
        for artifact in artifacts
        if artifact.ok
    ]


class Presenter(ABC):
    """Interface for rendering job state and publishing clips."""

    @abstractmethod
    def show_state(self, state: JobState) -> None:
        """Render a job state (status, progress, summary or error)."""

    @abstractmethod
    def present(self, link: ArtifactLink) -> Optional[Path]:
        """Make a clip retrievable; returns where it was stored, if anywhere."""


class ConsolePresenter(Presenter):
    """Writes clips to a directory and reports status on the console."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)
        self.published: List[Path] = []
        self._last_progress: Optional[int] = None

    def show_state(self, state: JobState) -> None:
        if state.stage is JobStage.FAILED:
            print_failure(state.message)
        elif state.stage is JobStage.DONE:
            print_done(state.message, missing=state.missing_count)
        elif state.stage is JobStage.PROCESSING:
            # Repeated percents are common with -progress output
            if state.progress != self._last_progress:
                self._last_progress = state.progress
                print_progress(state.progress, state.message)
        elif state.stage is not JobStage.IDLE:
            self._last_progress = None
            print_stage(state.message)

    def present(self, link: ArtifactLink) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / link.filename
        path.write_bytes(link.data)
        self.published.append(path)
        print_clip(link.display_name, str(path), format_size(len(link.data)))
        return path


def attach_presenter(machine: JobStateMachine, presenter: Presenter) -> None:
    """Subscribe a presenter to a job state machine."""

    def on_state(event: Event) -> None:
        state: JobState = event.data["state"]
        presenter.show_state(state)
        if state.stage is JobStage.DONE:
            for link in build_artifact_links(state.artifacts, machine.segment_length):
                presenter.present(link)

    machine.events.on(EventType.STATE_CHANGED, on_state)
    machine.events.on(EventType.PROGRESS_UPDATE, on_state)
