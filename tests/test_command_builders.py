"""Unit tests for command builder functionality

This test suite verifies the ffmpeg arguments built from a segment plan.
"""

import unittest

from cortado.command_builders import build_segment_command, clip_name
from cortado.segmentation import plan_segments


class TestCommandBuilders(unittest.TestCase):
    """Test cases for command builder utilities"""
    def test_build_segment_command(self):
        cmd = build_segment_command(plan_segments(150.0, 60))
        self.assertEqual(cmd.argv, (
            "-i", "input.mp4",
            "-c", "copy",
            "-map", "0",
            "-f", "segment",
            "-segment_times", "60,120",
            "-segment_start_number", "1",
            "-reset_timestamps", "1",
            "clipe_%03d.mp4",
        ))
        self.assertEqual(cmd.segment_times, "60,120")

    def test_single_clip_has_empty_segment_times(self):
        cmd = build_segment_command(plan_segments(45.0, 60))
        index = cmd.argv.index("-segment_times")
        self.assertEqual(cmd.argv[index + 1], "")
        self.assertEqual(cmd.segment_times, "")

    def test_command_is_deterministic(self):
        plan = plan_segments(600.0, 60)
        self.assertEqual(build_segment_command(plan), build_segment_command(plan))

    def test_custom_names(self):
        cmd = build_segment_command(plan_segments(90.0, 60), "source.mkv", "part_%03d.mkv")
        self.assertEqual(cmd.argv[1], "source.mkv")
        self.assertEqual(cmd.argv[-1], "part_%03d.mkv")

    def test_clip_name(self):
        self.assertEqual(clip_name(1), "clipe_001.mp4")
        self.assertEqual(clip_name(12), "clipe_012.mp4")
        self.assertEqual(clip_name(3, "part_%03d.mkv"), "part_003.mkv")


if __name__ == "__main__":
    unittest.main()
