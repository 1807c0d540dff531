"""Helper functions for building ffmpeg segmentation commands"""

import logging
import re
from dataclasses import dataclass
from typing import Pattern, Tuple

from .config import INPUT_NAME, OUTPUT_TEMPLATE
from .segmentation import SegmentPlan

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineCommand:
    """ffmpeg arguments for one segmentation run (without the binary)"""
    argv: Tuple[str, ...]
    segment_times: str
    input_name: str
    output_template: str


def clip_name(index: int, output_template: str = OUTPUT_TEMPLATE) -> str:
    """Name of the 1-based clip ffmpeg writes for this index"""
    return output_template % index


def build_segment_command(
    plan: SegmentPlan,
    input_name: str = INPUT_NAME,
    output_template: str = OUTPUT_TEMPLATE
) -> EngineCommand:
    """Build ffmpeg arguments that split the input at the plan's cut points"""
    segment_times = plan.segment_times
    argv = (
        "-i", input_name,
        "-c", "copy",
        "-map", "0",
        "-f", "segment",
        "-segment_times", segment_times,
        "-segment_start_number", "1",
        "-reset_timestamps", "1",
        output_template,
    )
    log.debug("Segment command: %s", " ".join(argv))
    return EngineCommand(
        argv=argv,
        segment_times=segment_times,
        input_name=input_name,
        output_template=output_template,
    )


def output_pattern(output_template: str = OUTPUT_TEMPLATE) -> Pattern[str]:
    """Regex matching every clip name the template can produce"""
    parts = re.split(r"%0?\d*d", output_template)
    return re.compile(r"\d+".join(re.escape(part) for part in parts) + r"\Z")
