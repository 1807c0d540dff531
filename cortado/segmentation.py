"""
Segment planning

Responsibilities:
  - Validate the probed duration and the configured segment length
  - Compute the expected number of clips
  - Compute the cut points handed to the ffmpeg segment muxer

Cut points are whole seconds. Each one is (i + 1) * segment_length rounded
to the nearest integer with ties rounded up; all values are positive, so
this is the same as rounding half away from zero. Segment lengths below one
second are rejected because rounding could then merge neighbouring cuts.
"""

import logging
import math
from dataclasses import dataclass
from numbers import Real
from typing import Tuple

from .exceptions import InvalidPlanInputError

logger = logging.getLogger(__name__)

MIN_SEGMENT_LENGTH = 1


@dataclass(frozen=True)
class SegmentPlan:
    """
    Immutable cut plan for one run.

    Attributes:
        total_duration: Probed duration of the input in seconds
        segment_length: Fixed length of each clip in seconds
        cut_points: Strictly increasing cut timestamps, without 0 and the end
        expected_clip_count: Number of clips ffmpeg should produce
    """
    total_duration: float
    segment_length: float
    cut_points: Tuple[int, ...]
    expected_clip_count: int

    @property
    def segment_times(self) -> str:
        """Comma-joined cut points for -segment_times ("" for a single clip)"""
        return ",".join(str(t) for t in self.cut_points)


def round_half_up(value: float) -> int:
    """Round a non-negative value to the nearest integer, ties up"""
    return math.floor(value + 0.5)


def _check_number(value, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidPlanInputError(f"{name} must be a number, got {value!r}", module="segmentation")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidPlanInputError(f"{name} must be finite, got {value}", module="segmentation")
    return value


def plan_segments(duration: float, segment_length: float) -> SegmentPlan:
    """
    Plan fixed-length segments covering the whole input.

    Args:
        duration: Total duration in seconds (>= 0)
        segment_length: Clip length in seconds (>= 1)

    Returns:
        SegmentPlan with max(1, ceil(duration / segment_length)) clips

    Raises:
        InvalidPlanInputError: If either argument violates its precondition
    """
    duration = _check_number(duration, "duration")
    length = _check_number(segment_length, "segment_length")
    if duration < 0:
        raise InvalidPlanInputError(f"duration must be >= 0, got {duration}", module="segmentation")
    if length < MIN_SEGMENT_LENGTH:
        raise InvalidPlanInputError(
            f"segment_length must be >= {MIN_SEGMENT_LENGTH}s, got {length}",
            module="segmentation"
        )

    clip_count = max(1, math.ceil(duration / length))
    cut_points = tuple(round_half_up((i + 1) * length) for i in range(clip_count - 1))

    plan = SegmentPlan(
        total_duration=duration,
        segment_length=segment_length,
        cut_points=cut_points,
        expected_clip_count=clip_count,
    )
    logger.info(
        "Segmentation: duration %.2fs. Cut points: %s. Total clips: %d",
        duration, plan.segment_times or "N/A", clip_count
    )
    return plan
