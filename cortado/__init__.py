"""
cortado - split a video into fixed-length clips

This package provides a small processing pipeline that:
- Probes the duration of an input video
- Plans fixed-length cut points covering the whole file
- Runs ffmpeg once with the segment muxer (stream copy, no re-encode)
- Collects every produced clip, tolerating missing ones
- Reports progress and results through a single job state machine

Only one job runs at a time; all engine work happens in a private
working directory that is cleaned after each run.
"""

__version__ = "0.1.0"
