"""High-level job orchestration

Responsibilities:
  - Walk one run through probing, planning, engine loading, processing
    and clip collection, in that order
  - Publish every transition and progress update to observers
  - Reject a new run while one is in flight
  - Remove the engine-resident input (and clips) on every path
"""

import asyncio
import logging
from dataclasses import replace
from typing import List, Optional

from .collector import Artifact, ArtifactCollector
from .command_builders import build_segment_command, clip_name
from .config import INPUT_NAME, OUTPUT_TEMPLATE, SEGMENT_LENGTH
from .engine.invoker import EngineInvoker
from .events import EventEmitter, EventType
from .exceptions import BusyError, CortadoError, EngineIOError, error_message
from .media import MediaSource
from .probe import DurationProbe
from .segmentation import SegmentPlan, plan_segments
from .status import JobStage, JobState

logger = logging.getLogger(__name__)


class JobStateMachine:
    """
    Runs one segmentation job at a time.

    The engine invoker is owned by the caller and shared across runs, so
    the engine is loaded at most once per process.
    """

    def __init__(
        self,
        invoker: EngineInvoker,
        probe: Optional[DurationProbe] = None,
        collector: Optional[ArtifactCollector] = None,
        segment_length: float = SEGMENT_LENGTH,
        input_name: str = INPUT_NAME,
        output_template: str = OUTPUT_TEMPLATE
    ):
        self._invoker = invoker
        self._probe = probe or DurationProbe()
        self._collector = collector or ArtifactCollector(invoker, output_template)
        self.segment_length = segment_length
        self.input_name = input_name
        self.output_template = output_template
        self.events = EventEmitter()
        self._state = JobState()

    @property
    def state(self) -> JobState:
        return self._state

    def _transition(self, stage: JobStage, message: str, **fields) -> None:
        previous = self._state.stage
        self._state = JobState(stage=stage, message=message, **fields)
        logger.debug("Job state %s -> %s", previous.name, stage.name)
        self.events.emit(
            EventType.STATE_CHANGED,
            {"state": self._state, "previous": previous},
            source="job"
        )

    def _on_progress(self, percent: int) -> None:
        # Late engine notifications must not touch a finished run
        if self._state.stage is not JobStage.PROCESSING:
            return
        percent = min(100, max(0, int(percent)))
        self._state = replace(self._state, progress=percent, message=f"Processing: {percent}%")
        self.events.emit(
            EventType.PROGRESS_UPDATE,
            {"state": self._state, "progress": percent},
            source="job"
        )

    async def start(self, source: MediaSource) -> JobState:
        """
        Split a video into clips.

        Args:
            source: Input video

        Returns:
            The terminal JobState (DONE or FAILED)

        Raises:
            BusyError: If a run is already in flight; its state is untouched
        """
        if self._state.is_busy:
            raise BusyError(
                f"A job is already running ({self._state.stage.name})", module="job"
            )

        logger.info("Starting job for %s (%d bytes)", source.name, source.size)
        self._transition(JobStage.PROBING_DURATION, "Reading video duration...")
        plan: Optional[SegmentPlan] = None
        artifacts: List[Artifact] = []
        failure: Optional[BaseException] = None
        try:
            duration = await self._probe.probe(source)
            plan = plan_segments(duration, self.segment_length)
            command = build_segment_command(plan, self.input_name, self.output_template)
            clips = plan.expected_clip_count

            if not self._invoker.is_ready:
                self._transition(
                    JobStage.LOADING_ENGINE, "Loading the processing engine...",
                    expected_clip_count=clips
                )
                await self._invoker.initialize()

            self._transition(
                JobStage.PROCESSING, f"Splitting into {clips} clips...",
                expected_clip_count=clips
            )
            await self._remove_outputs(None)
            await self._invoker.write_input(self.input_name, source.data)
            await self._invoker.run(command, self._on_progress)

            self._transition(
                JobStage.COLLECTING_ARTIFACTS, "Collecting clips...",
                expected_clip_count=clips
            )
            artifacts = await self._collector.collect(plan)
        except CortadoError as e:
            failure = e
            logger.error("Job failed: %s", e)
        except asyncio.CancelledError as e:
            failure = e
            logger.warning("Job cancelled while %s", self._state.stage.name)
        except Exception as e:
            failure = e
            logger.exception("Unexpected error while processing %s", source.name)

        await self._cleanup(plan)
        expected = plan.expected_clip_count if plan else 0

        if failure is not None:
            reason = "Job was cancelled" if isinstance(failure, asyncio.CancelledError) else error_message(failure)
            self._transition(
                JobStage.FAILED, f"Error processing the video: {reason}",
                reason=reason, expected_clip_count=expected
            )
            if isinstance(failure, asyncio.CancelledError):
                raise failure
            return self._state

        available = sum(1 for a in artifacts if a.ok)
        message = f"{available} of {expected} clips ready"
        self._transition(
            JobStage.DONE, message,
            artifacts=tuple(artifacts), expected_clip_count=expected
        )
        logger.info("Job finished: %s", message)
        return self._state

    async def _remove_outputs(self, plan: Optional[SegmentPlan]) -> None:
        """Delete every clip in engine storage, including ones from earlier runs"""
        try:
            names = await self._invoker.list_outputs(self.output_template)
        except EngineIOError as e:
            logger.warning("Could not list engine clips: %s", e.message)
            count = plan.expected_clip_count if plan else 0
            names = [clip_name(index, self.output_template) for index in range(1, count + 1)]

        for name in names:
            try:
                await self._invoker.delete_output(name)
            except EngineIOError as e:
                if not e.not_found:
                    logger.warning("Failed to remove %s: %s", name, e.message)
            except Exception:
                logger.exception("Failed to remove %s", name)

    async def _cleanup(self, plan: Optional[SegmentPlan]) -> None:
        """Best-effort removal of engine files; failures are only logged"""
        if not self._invoker.is_ready:
            logger.debug("Engine not loaded, no engine files to clean up")
            return

        try:
            await self._invoker.delete_input(self.input_name)
        except EngineIOError as e:
            if e.not_found:
                logger.debug("Input %s was not in engine storage", self.input_name)
            else:
                logger.warning("Failed to clean up engine input: %s", e.message)
        except Exception:
            logger.exception("Failed to clean up engine input")

        await self._remove_outputs(plan)


def create_job_state_machine(segment_length: float = SEGMENT_LENGTH) -> JobStateMachine:
    """Wire a state machine to the local ffmpeg engine"""
    from .engine.local import FFmpegEngine

    invoker = EngineInvoker(FFmpegEngine())
    return JobStateMachine(invoker, segment_length=segment_length)
